"""Compiled-in default menu, used when neither the local cache nor the remote store has one."""

from cafe.models.menu_item import Category, MenuItem

_UNSPLASH = "https://images.unsplash.com/photo-{}?q=80&w=400&auto=format&fit=crop"

_MENU_SEED = [
    {
        "id": "c1",
        "name_en": "MOA Signature Latte",
        "name_id": "Kopi Susu MOA",
        "price": 25000,
        "category": Category.COFFEE,
        "description": "Our signature blend with secret creamy milk and palm sugar.",
        "image": _UNSPLASH.format("1541167760496-1628856ab772"),
        "healthy_score": 6,
        "ingredients": ["Espresso", "Creamy Milk", "Palm Sugar", "Secret Syrup"],
    },
    {
        "id": "c2",
        "name_en": "Espresso",
        "name_id": "Espresso",
        "price": 15000,
        "category": Category.COFFEE,
        "description": "Pure, strong, and bold extraction of our house blend beans.",
        "image": _UNSPLASH.format("1510591509098-f4fdc6d0ff04"),
        "healthy_score": 9,
        "ingredients": ["100% Arabica Beans"],
    },
    {
        "id": "c3",
        "name_en": "Americano",
        "name_id": "Americano",
        "price": 18000,
        "category": Category.COFFEE,
        "description": "Espresso diluted with hot water for a smooth finish.",
        "image": _UNSPLASH.format("1551030173-122aabc4489c"),
        "healthy_score": 9,
        "ingredients": ["Espresso", "Water"],
    },
    {
        "id": "c4",
        "name_en": "Cappuccino",
        "name_id": "Cappuccino",
        "price": 22000,
        "category": Category.COFFEE,
        "description": "Espresso topped with steamed milk foam.",
        "image": _UNSPLASH.format("1572442388796-11668a67e53d"),
        "healthy_score": 7,
        "ingredients": ["Espresso", "Steamed Milk", "Foam"],
    },
    {
        "id": "c5",
        "name_en": "Mocha",
        "name_id": "Mocha",
        "price": 25000,
        "category": Category.COFFEE,
        "description": "Chocolate flavoured variant of a café latte.",
        "image": _UNSPLASH.format("1578314675249-a6910f80cc4e"),
        "healthy_score": 5,
        "ingredients": ["Espresso", "Chocolate", "Milk"],
    },
    {
        "id": "nc1",
        "name_en": "Matcha Latte",
        "name_id": "Matcha Latte",
        "price": 25000,
        "category": Category.NON_COFFEE,
        "description": "Premium Japanese green tea powder with milk.",
        "image": _UNSPLASH.format("1515823664409-53b7a835bf61"),
        "healthy_score": 8,
        "ingredients": ["Matcha Powder", "Milk", "Sugar"],
    },
    {
        "id": "nc2",
        "name_en": "Hot Chocolate",
        "name_id": "Cokelat Panas",
        "price": 20000,
        "category": Category.NON_COFFEE,
        "description": "Rich and creamy hot cocoa.",
        "image": _UNSPLASH.format("1544787219-7f47ccb76574"),
        "healthy_score": 4,
        "ingredients": ["Cocoa Powder", "Milk", "Sugar"],
    },
    {
        "id": "s1",
        "name_en": "Croissant",
        "name_id": "Croissant",
        "price": 18000,
        "category": Category.SNACKS,
        "description": "Buttery, flaky, french pastry.",
        "image": _UNSPLASH.format("1555507036-ab1f4038808a"),
        "healthy_score": 3,
        "ingredients": ["Flour", "Butter", "Yeast"],
    },
    {
        "id": "s2",
        "name_en": "Banana Bread",
        "name_id": "Roti Pisang",
        "price": 15000,
        "category": Category.SNACKS,
        "description": "Moist, sweet bread made from mashed bananas.",
        "image": _UNSPLASH.format("1603569283847-aa295f0d016a"),
        "healthy_score": 6,
        "ingredients": ["Banana", "Flour", "Sugar"],
    },
]


def initial_menu() -> list[MenuItem]:
    """Fresh copies of the default menu."""
    return [MenuItem(**item_data) for item_data in _MENU_SEED]
