import textwrap


def greet(name: str) -> str:
    return textwrap.dedent(f"Hello {name}")
