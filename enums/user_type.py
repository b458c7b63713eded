from enum import Enum


class UserType(str, Enum):
    """
    Role stored in the HTTP session after login.

    ADMIN is granted to usernames listed in ADMIN_USERNAME_LIST.
    """
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
