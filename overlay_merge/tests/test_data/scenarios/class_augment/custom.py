from generated.models import Pet as _Pet


class Pet:
    __generated: _Pet
    nickname: str = ""

    def describe(self) -> str:
        return self.__generated.describe().upper()
