from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class Language(str, Enum):
    EN = "en"
    ID = "id"


DEFAULT_LANGUAGE = Language.EN
