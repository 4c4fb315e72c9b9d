"""Built-in local food dataset used when no remote store is configured."""

from food_search.domain.foods import FoodRecord, FoodSource, Per100g, Serving

_BOWL = (
    Serving(label="1 cup", grams=100),
    Serving(label="1 bowl", grams=150),
)
_PIECE = (
    Serving(label="1 piece", grams=40),
    Serving(label="100g", grams=100),
)
_GLASS = (
    Serving(label="1 glass", grams=200),
    Serving(label="100g", grams=100),
)

# name, category, tags, (kcal, protein, carbs, fat), servings
_SEED_ROWS: list[
    tuple[str, str, tuple[str, ...], tuple[float, float, float, float], tuple]
] = [
    (
        "Roti",
        "breads",
        ("roti", "chapati", "wheat", "bread", "indian"),
        (297, 11, 51, 7),
        _PIECE,
    ),
    (
        "Paratha",
        "breakfast",
        ("paratha", "wheat", "bread", "indian"),
        (280, 8, 45, 8),
        _PIECE,
    ),
    (
        "Aloo Paratha",
        "breakfast",
        ("paratha", "potato", "wheat", "indian"),
        (320, 9, 48, 12),
        _PIECE,
    ),
    (
        "Poha (Flattened Rice)",
        "breakfast",
        ("poha", "rice", "breakfast", "indian"),
        (360, 7, 78, 1),
        _BOWL,
    ),
    (
        "Upma (Semolina)",
        "breakfast",
        ("upma", "semolina", "breakfast", "indian"),
        (340, 10, 70, 2),
        _BOWL,
    ),
    (
        "Idli",
        "breakfast",
        ("idli", "rice", "lentil", "breakfast", "indian"),
        (120, 4, 25, 0.5),
        _PIECE,
    ),
    (
        "Dosa",
        "breakfast",
        ("dosa", "rice", "lentil", "breakfast", "indian"),
        (150, 5, 30, 1),
        _PIECE,
    ),
    (
        "Basmati Rice",
        "grains",
        ("rice", "basmati", "grain", "indian"),
        (350, 7, 78, 1),
        _BOWL,
    ),
    (
        "Jowar (Sorghum)",
        "grains",
        ("jowar", "sorghum", "grain", "gluten-free"),
        (330, 11, 72, 3),
        _BOWL,
    ),
    (
        "Toor Dal (Pigeon Pea)",
        "pulses",
        ("toor", "dal", "pigeon pea", "pulse"),
        (340, 22, 62, 1),
        _BOWL,
    ),
    (
        "Moong Dal (Green Gram)",
        "pulses",
        ("moong", "dal", "green gram", "pulse"),
        (350, 24, 60, 1),
        _BOWL,
    ),
    (
        "Chana Dal (Split Chickpea)",
        "pulses",
        ("chana", "dal", "chickpea", "pulse"),
        (360, 21, 61, 6),
        _BOWL,
    ),
    (
        "Kidney Beans (Rajma)",
        "pulses",
        ("rajma", "kidney beans", "pulse"),
        (330, 23, 60, 1),
        _BOWL,
    ),
    (
        "Spinach (Palak)",
        "vegetables",
        ("spinach", "palak", "vegetable", "leafy"),
        (23, 3, 4, 0.4),
        _BOWL,
    ),
    (
        "Paneer (Cottage Cheese)",
        "dairy",
        ("paneer", "cottage cheese", "dairy"),
        (265, 18, 2, 20),
        _PIECE,
    ),
    (
        "Curd (Yogurt)",
        "dairy",
        ("curd", "yogurt", "dairy"),
        (59, 4, 4, 3.3),
        _BOWL,
    ),
    (
        "Dal Khichdi",
        "meals",
        ("khichdi", "dal", "rice", "comfort food"),
        (180, 8, 32, 3),
        _BOWL,
    ),
    (
        "Rajma Chawal",
        "meals",
        ("rajma", "rice", "kidney beans"),
        (220, 12, 40, 2),
        _BOWL,
    ),
    (
        "Masala Chai",
        "beverages",
        ("chai", "tea", "masala", "beverage"),
        (45, 1, 8, 1.5),
        _GLASS,
    ),
    (
        "Lassi (Sweet)",
        "beverages",
        ("lassi", "yogurt", "sweet", "beverage"),
        (85, 3, 12, 2.5),
        _GLASS,
    ),
]


def seed_foods() -> list[FoodRecord]:
    """Return the built-in dataset as unpersisted records."""
    return [
        FoodRecord(
            name=name,
            brand="Generic",
            category=category,
            tags=tags,
            per100g=Per100g(kcal=kcal, protein=protein, carbs=carbs, fat=fat),
            servings=servings,
            verified=True,
            source=FoodSource.USER,
        )
        for name, category, tags, (kcal, protein, carbs, fat), servings in _SEED_ROWS
    ]
