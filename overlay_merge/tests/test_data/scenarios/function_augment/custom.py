"""Customized API client functions."""

from generated.api import get_pet as _get_pet


def get_pet(pet_id: int) -> dict:
    pet = _get_pet(pet_id)
    pet["cached"] = True
    return pet
