"""
Domain bucket patterns.

Coarse life-area buckets used to route a recurring payment independently
of the user's own category tree. Buckets are checked in this order and
a later bucket only wins with a strictly higher confidence.
"""

DOMAIN_PATTERNS = {
    "property": {
        "providers": [
            # Energy
            "british gas", "bg energy", "eon", "e.on", "edf", "edf energy", "octopus energy",
            "bulb", "ovo energy", "scottish power", "sse", "shell energy", "utilita",
            # Water
            "thames water", "severn trent", "united utilities", "yorkshire water",
            "south west water", "anglian water", "wessex water", "northumbrian water",
            # Council tax
            "council tax", "borough council", "city council", "county council",
            # Home broadband and phone
            "bt broadband", "sky broadband", "virgin media", "talktalk", "plusnet",
            # Home insurance and mortgage
            "home insurance", "buildings insurance", "contents insurance",
            "nationwide mortgage", "halifax mortgage", "santander mortgage", "hsbc mortgage",
        ],
        "keywords": [
            "electric", "electricity", "gas", "energy", "power", "utility", "utilities",
            "water", "sewerage", "council tax", "rates", "broadband", "internet", "wifi",
            "mortgage", "home insurance", "buildings", "contents",
        ],
        "record_types": {
            "energy": "utility_electric",
            "electric": "utility_electric",
            "gas": "utility_gas",
            "water": "utility_water",
            "council": "council_tax",
            "broadband": "utility_broadband",
            "internet": "utility_broadband",
            "mortgage": "mortgage",
            "insurance": "home_insurance",
        },
    },

    "vehicles": {
        "providers": [
            # Motor insurance
            "admiral", "direct line", "aviva", "axa", "churchill", "esure", "hastings direct",
            "lv=", "more than", "rac", "aa insurance",
            # Vehicle finance
            "black horse", "santander consumer", "motonovo", "pcp finance",
            # MOT and servicing
            "kwik fit", "halfords", "ats euromaster", "mot test",
            # Fuel
            "shell", "bp", "esso", "tesco fuel", "sainsburys fuel", "asda fuel", "morrisons fuel",
        ],
        "keywords": [
            "car insurance", "motor insurance", "vehicle", "mot", "road tax", "dvla",
            "car finance", "pcp", "lease", "fuel", "petrol", "diesel",
            "breakdown", "recovery", "garage", "servicing", "tyres",
        ],
        "record_types": {
            "insurance": "insurance",
            "mot": "mot",
            "tax": "road_tax",
            "finance": "finance",
            "fuel": "fuel",
            "petrol": "fuel",
            "service": "service",
        },
    },

    "insurance": {
        "providers": [
            # Life
            "legal & general", "aviva life", "zurich", "prudential", "scottish widows",
            # Health
            "bupa", "axa health", "vitality health", "benenden health", "simply health",
            # Travel
            "post office travel", "staysure", "age uk travel",
            # Pet
            "pet plan", "direct line pet", "animal friends",
        ],
        "keywords": [
            "life insurance", "life cover", "critical illness", "income protection",
            "health insurance", "private health", "dental", "travel insurance",
            "pet insurance", "protection",
        ],
        "record_types": {
            "life": "life_insurance",
            "health": "health_insurance",
            "travel": "travel_insurance",
            "income": "income_protection",
            "pet": "pet_insurance",
        },
    },

    "government": {
        "providers": [
            "dvla", "hm passport", "passport office", "hmrc", "self assessment",
            "tv licensing", "tv licence", "gov.uk",
        ],
        "keywords": [
            "passport", "driving licence", "photocard", "tv licence", "tax return",
            "self assessment", "vat", "national insurance",
        ],
        "record_types": {
            "passport": "passport",
            "driving": "driving_licence",
            "tv": "tv_licence",
            "tax": "tax",
            "national insurance": "ni_contributions",
        },
    },

    "services": {
        "providers": [
            # Streaming
            "netflix", "amazon prime", "disney+", "apple tv", "spotify", "youtube premium",
            # Gym and fitness
            "puregym", "david lloyd", "virgin active", "nuffield health", "the gym",
            # Memberships
            "aa membership", "rac membership",
        ],
        "keywords": [
            "subscription", "membership", "streaming", "gym", "fitness",
            "breakdown cover", "magazine", "software", "cloud storage",
        ],
        "record_types": {
            "streaming": "subscription",
            "subscription": "subscription",
            "gym": "membership",
            "breakdown": "breakdown_cover",
        },
    },
}

FALLBACK_DOMAIN = "finance"
FALLBACK_DOMAIN_CONFIDENCE = 0.3

PROVIDER_MATCH_CONFIDENCE = 0.95
KEYWORD_MATCH_CONFIDENCE = 0.75

# Category -> domain pairs that earn a small boost (capped)
CATEGORY_DOMAIN_BOOSTS = {
    ("utilities", "property"): 0.1,
    ("bills", "property"): 0.1,
    ("insurance", "insurance"): 0.1,
}
MAX_DOMAIN_CONFIDENCE = 0.95
