import enum


class ContactType(str, enum.Enum):
    phone = "phone"
    email = "email"


class ProductCategory(str, enum.Enum):
    food = "Food"
    beverage = "Beverage"
    clothes = "Clothes"
    furniture = "Furniture"
    tools = "Tools"
