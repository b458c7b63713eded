from enum import Enum


class SortField(str, Enum):
    """
    Allow-listed product sort columns.

    Values are the public query-string names; any other input falls back to CREATED_AT.
    """
    PRICE = "price"
    CREATED_AT = "created_at"
    NAME = "name"

    @classmethod
    def from_string(cls, value: str | None) -> 'SortField':
        if value is None:
            return cls.CREATED_AT
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.CREATED_AT


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def from_string(cls, value: str | None) -> 'SortOrder':
        if value is not None and value.strip().upper() == cls.ASC.value:
            return cls.ASC
        return cls.DESC
