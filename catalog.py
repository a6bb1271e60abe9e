"""
Static reference data: partner waste companies and points redemption options.

Both lists ship with the application and never change at runtime. Pickup
requests copy a company's id and name at creation time instead of holding a
foreign key into a companies table.
"""

COMPANY_TYPES = ("recycling", "incineration")

COMPANIES = [
    {
        "id": 1,
        "name": "GreenCycle Ltd",
        "type": "recycling",
        "location": "Nairobi",
        "distance": "2.1 km",
        "rating": 4.8,
        "verified": True,
        "materials": ["Plastic", "Metal", "Glass"],
        "phone": "+254 712 345 678",
    },
    {
        "id": 2,
        "name": "EcoFlame Industries",
        "type": "incineration",
        "location": "Kiambu",
        "distance": "5.3 km",
        "rating": 4.5,
        "verified": True,
        "materials": ["Medical waste", "Non-recyclable"],
        "phone": "+254 723 456 789",
    },
    {
        "id": 3,
        "name": "CleanCity Recyclers",
        "type": "recycling",
        "location": "Nairobi",
        "distance": "3.7 km",
        "rating": 4.9,
        "verified": True,
        "materials": ["Paper", "Cardboard", "Plastic"],
        "phone": "+254 734 567 890",
    },
    {
        "id": 4,
        "name": "SafeBurn Solutions",
        "type": "incineration",
        "location": "Mombasa",
        "distance": "12 km",
        "rating": 4.3,
        "verified": True,
        "materials": ["Hazardous", "Chemical waste"],
        "phone": "+254 745 678 901",
    },
    {
        "id": 5,
        "name": "ReNew Materials Co",
        "type": "recycling",
        "location": "Nakuru",
        "distance": "8.2 km",
        "rating": 4.7,
        "verified": False,
        "materials": ["E-waste", "Batteries", "Metal"],
        "phone": "+254 756 789 012",
    },
    {
        "id": 6,
        "name": "ThermalWaste Kenya",
        "type": "incineration",
        "location": "Nairobi",
        "distance": "4.1 km",
        "rating": 4.6,
        "verified": True,
        "materials": ["Industrial waste", "Organic"],
        "phone": "+254 767 890 123",
    },
]

REDEMPTION_OPTIONS = [
    {
        "type": "supermarket",
        "label": "Supermarket Discount",
        "description": "Get discounts at partner supermarkets",
        "min_points": 50,
        "examples": ["Naivas", "Carrefour", "Quickmart"],
    },
    {
        "type": "airtime",
        "label": "Airtime Top-Up",
        "description": "Convert points to mobile airtime",
        "min_points": 20,
        "examples": ["Safaricom", "Airtel", "Telkom"],
    },
    {
        "type": "brand_offer",
        "label": "Brand Offers",
        "description": "Exclusive deals from partner brands",
        "min_points": 100,
        "examples": ["Java House", "KFC", "Jumia", "Uber"],
    },
]

# Loyalty earn rate: 20 points for every KES 1,000 spent
POINTS_PER_KES_1000 = 20


def get_company(company_id):
    """Return the catalog entry for ``company_id`` or None."""
    try:
        company_id = int(company_id)
    except (TypeError, ValueError):
        return None
    for company in COMPANIES:
        if company["id"] == company_id:
            return company
    return None


def filter_companies(company_type=None, search=None):
    """Companies page filter: type tab ("all" or a company type) plus a
    case-insensitive substring match on the name."""
    results = COMPANIES
    if company_type and company_type != "all":
        results = [c for c in results if c["type"] == company_type]
    if search:
        needle = search.strip().lower()
        results = [c for c in results if needle in c["name"].lower()]
    return list(results)


def nearby_companies(location=None, limit=3):
    """Companies in the caller's town first, then the rest by distance."""
    def sort_key(company):
        same_town = bool(location) and company["location"].lower() == location.strip().lower()
        return (not same_town, float(company["distance"].split()[0]))

    return sorted(COMPANIES, key=sort_key)[:limit]


def get_redemption_option(redemption_type):
    for option in REDEMPTION_OPTIONS:
        if option["type"] == redemption_type:
            return option
    return None


def points_for_spend(amount_kes):
    """Points earned for a completed order worth ``amount_kes``."""
    if amount_kes is None or amount_kes <= 0:
        return 0
    return int(amount_kes // 1000) * POINTS_PER_KES_1000
