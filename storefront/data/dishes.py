"""
Built-in dish list used when the catalog is served from memory.

Each entry mirrors a menu_items row; ``seed_menu`` copies them into an
empty table when the database catalog is enabled.
"""

CATEGORIES = [
    {"id": "meals", "name": "Meals", "local_name": "భోజనాలు"},
    {"id": "curries", "name": "Curries", "local_name": "కూరలు"},
    {"id": "pickles", "name": "Pickles", "local_name": "ఊరగాయలు"},
    {"id": "tiffins", "name": "Tiffins", "local_name": "టిఫిన్లు"},
    {"id": "sweets", "name": "Sweets", "local_name": "తీపి పదార్థాలు"},
]

CATEGORY_IDS = [c["id"] for c in CATEGORIES]
REGIONS = ["andhra", "telangana", "both"]
DISH_TYPES = ["veg", "nonveg"]

DISHES = [
    {
        "id": "1",
        "name": "Special Hyderabadi Biryani",
        "local_name": "స్పెషల్ హైదరాబాద్ బిర్యానీ",
        "description": "Aromatic basmati rice cooked with tender meat and secret spices, layered with love",
        "price": 250.0,
        "category": "meals",
        "region": "both",
        "dish_type": "nonveg",
        "image": "/assets/biryani.jpg",
        "popular": True,
        "ingredients": ["Basmati Rice", "Chicken/Mutton", "Yogurt", "Spices", "Herbs", "Ghee"],
        "nutrition": {"calories": 550, "protein": "25g", "carbs": "60g"},
    },
    {
        "id": "2",
        "name": "Crispy Masala Dosa",
        "local_name": "మసాలా దోస",
        "description": "Golden crispy dosa with perfectly spiced potato filling, served with sambar & chutneys",
        "price": 80.0,
        "category": "tiffins",
        "region": "both",
        "dish_type": "veg",
        "image": "/assets/dosa.jpg",
        "popular": True,
        "ingredients": ["Rice Batter", "Urad Dal", "Potato", "Onion", "Spices", "Curry Leaves"],
        "nutrition": {"calories": 250, "protein": "8g", "carbs": "45g"},
    },
    {
        "id": "3",
        "name": "Andhra Chicken Curry",
        "local_name": "ఆంధ్ర కోడి కూర",
        "description": "Spicy and tangy Andhra style chicken curry with authentic home-ground masala",
        "price": 180.0,
        "category": "curries",
        "region": "andhra",
        "dish_type": "nonveg",
        "image": "/assets/chicken-curry.jpg",
        "popular": True,
        "ingredients": ["Chicken", "Onion", "Tomato", "Red Chili", "Coriander", "Garlic", "Ginger"],
        "nutrition": {"calories": 320, "protein": "30g", "carbs": "15g"},
    },
    {
        "id": "4",
        "name": "Avakaya Mango Pickle",
        "local_name": "ఆవకాయ",
        "description": "Traditional Andhra style mango pickle with perfect spice balance - just like Amma made",
        "price": 150.0,
        "category": "pickles",
        "region": "andhra",
        "dish_type": "veg",
        "image": "/assets/pickles.jpg",
        "popular": False,
        "ingredients": ["Raw Mango", "Red Chili Powder", "Mustard", "Fenugreek", "Salt", "Oil"],
        "nutrition": {"calories": 50, "protein": "1g", "carbs": "8g"},
    },
    {
        "id": "5",
        "name": "Bellam Ariselu",
        "local_name": "బెల్లం అరిసెలు",
        "description": "Sweet rice flour jaggery patties, a traditional festive delicacy made with pure ghee",
        "price": 120.0,
        "category": "sweets",
        "region": "both",
        "dish_type": "veg",
        "image": "/assets/sweets.jpg",
        "popular": False,
        "ingredients": ["Rice Flour", "Jaggery", "Ghee", "Cardamom", "Sesame Seeds"],
        "nutrition": {"calories": 280, "protein": "4g", "carbs": "50g"},
    },
    {
        "id": "6",
        "name": "Gongura Mutton",
        "local_name": "గోంగూర మటన్",
        "description": "Telangana signature dish - tender mutton cooked with tangy gongura leaves",
        "price": 280.0,
        "category": "curries",
        "region": "telangana",
        "dish_type": "nonveg",
        "image": "/assets/chicken-curry.jpg",
        "popular": True,
        "ingredients": ["Mutton", "Gongura Leaves", "Onion", "Garlic", "Spices", "Oil"],
        "nutrition": {"calories": 420, "protein": "35g", "carbs": "12g"},
    },
    {
        "id": "7",
        "name": "Idli Sambar",
        "local_name": "ఇడ్లీ సాంబార్",
        "description": "Soft steamed rice cakes with flavorful vegetable sambar and coconut chutney",
        "price": 60.0,
        "category": "tiffins",
        "region": "both",
        "dish_type": "veg",
        "image": "/assets/dosa.jpg",
        "popular": True,
        "ingredients": ["Rice", "Urad Dal", "Lentils", "Vegetables", "Tamarind", "Spices"],
        "nutrition": {"calories": 180, "protein": "6g", "carbs": "35g"},
    },
    {
        "id": "8",
        "name": "Pulihora (Tamarind Rice)",
        "local_name": "పులిహోర",
        "description": "Tangy and flavorful tamarind rice with peanuts and aromatic tempering",
        "price": 100.0,
        "category": "meals",
        "region": "both",
        "dish_type": "veg",
        "image": "/assets/biryani.jpg",
        "popular": False,
        "ingredients": ["Rice", "Tamarind", "Peanuts", "Curry Leaves", "Mustard", "Turmeric"],
        "nutrition": {"calories": 350, "protein": "8g", "carbs": "55g"},
    },
]
