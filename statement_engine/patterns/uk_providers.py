"""
UK provider patterns for statement ingestion and recurring payment detection.
Bank markers, payment-type codes, the default detection rule set and the
category name-paths used when resolving against a user's category tree.
"""

# Bank identification markers, checked in this order for every scanned token
BANK_MARKERS = [
    ("NatWest", ["NATWEST", "NAT WEST", "NATIONAL WESTMINSTER"]),
    ("Barclays", ["BARCLAYS"]),
    ("HSBC", ["HSBC"]),
    ("Lloyds", ["LLOYDS", "LLOYDS BANK"]),
    ("Santander", ["SANTANDER"]),
    ("TSB", ["TSB BANK", "THE SAVINGS BANK"]),
    ("Halifax", ["HALIFAX"]),
    ("Nationwide", ["NATIONWIDE"]),
    ("Co-operative", ["CO-OPERATIVE", "COOP BANK"]),
    ("First Direct", ["FIRST DIRECT"]),
]

UNKNOWN_BANK = "Unknown"

# Payment-type codes printed before or after the payee on UK statements
PAYMENT_TYPE_CODES = [
    "DD", "SO", "TFR", "CHQ", "FPO", "FPI", "ATM", "POS", "VIS", "BGC",
    "DEB", "OBP", "D/D", "S/O",
]


# Default rule-set document ("is_default" configuration).
# Stored in the legacy shape: utility_rules is read as bill_rules at load time.
DEFAULT_RULE_SET = {
    "name": "UK Banking Detection Rules v1.0",
    "description": "Default detection rules for common UK bills, subscriptions and insurance",
    "version": "1.0",
    "is_default": True,

    "utility_rules": [
        {
            "name": "British Gas",
            "patterns": ["BRITISH GAS", "BG ENERGY", "BRITISHGAS"],
            "category": "bills",
            "subcategory": "gas",
            "provider": "British Gas",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
        {
            "name": "EDF Energy",
            "patterns": ["EDF ENERGY", "EDF", "EDFENERGY"],
            "category": "bills",
            "subcategory": "electricity",
            "provider": "EDF Energy",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
        {
            "name": "E.ON",
            "patterns": ["E.ON", "EON ENERGY", "E ON ENERGY"],
            "category": "bills",
            "subcategory": "dual_fuel",
            "provider": "E.ON",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
        {
            "name": "Octopus Energy",
            "patterns": ["OCTOPUS ENERGY", "OCTOPUS"],
            "category": "bills",
            "subcategory": "dual_fuel",
            "provider": "Octopus Energy",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
        {
            "name": "SSE",
            "patterns": ["SSE ENERGY", "SSE ELECTRICITY", "SSE AIRTRICITY", "SCOTTISH & SOUTHERN"],
            "category": "bills",
            "subcategory": "dual_fuel",
            "provider": "SSE",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
        {
            "name": "Thames Water",
            "patterns": ["THAMES WATER", "THAMES WTR"],
            "category": "bills",
            "subcategory": "water",
            "provider": "Thames Water",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
        {
            "name": "Anglian Water",
            "patterns": ["ANGLIAN WATER", "ANGLIAN WTR"],
            "category": "bills",
            "subcategory": "water",
            "provider": "Anglian Water",
            "confidence_boost": 0.2,
            "expected_frequency": "monthly",
        },
    ],

    "council_tax_rules": [
        {
            "name": "Council Tax Generic",
            "patterns": ["COUNCIL TAX", "COUNCIL-TAX", "CT PAYMENT", "LOCAL COUNCIL"],
            "category": "council_tax",
            "subcategory": "council_services",
            "provider": "Local Council",
            "confidence_boost": 0.3,
            "expected_frequency": "monthly",
        },
    ],

    "insurance_rules": [
        {
            "name": "Direct Line",
            "patterns": ["DIRECT LINE", "DL INSURANCE"],
            "category": "insurance",
            "subcategory": "car_home",
            "provider": "Direct Line",
            "confidence_boost": 0.2,
        },
        {
            "name": "Aviva",
            "patterns": ["AVIVA", "AVIVA INSURANCE"],
            "category": "insurance",
            "subcategory": "general",
            "provider": "Aviva",
            "confidence_boost": 0.2,
        },
    ],

    "subscription_rules": [
        {
            "name": "Netflix",
            "patterns": ["NETFLIX", "NETFLIX.COM"],
            "category": "subscription",
            "subcategory": "streaming",
            "provider": "Netflix",
            "confidence_boost": 0.3,
            "expected_frequency": "monthly",
        },
        {
            "name": "Amazon Prime",
            "patterns": ["AMAZON PRIME", "AMZN PRIME", "AMAZON.CO.UK"],
            "category": "subscription",
            "subcategory": "shopping_streaming",
            "provider": "Amazon",
            "confidence_boost": 0.3,
        },
        {
            "name": "Spotify",
            "patterns": ["SPOTIFY", "SPOTIFY PREMIUM"],
            "category": "subscription",
            "subcategory": "music",
            "provider": "Spotify",
            "confidence_boost": 0.3,
            "expected_frequency": "monthly",
        },
    ],

    "telecoms_rules": [
        {
            "name": "Sky Services",
            "patterns": ["SKY DIGITAL", "SKY BROADBAND", "SKY SUBSCRIPTION", "SKY UK"],
            "category": "telecoms",
            "subcategory": "tv_broadband",
            "provider": "Sky",
            "confidence_boost": 0.2,
        },
        {
            "name": "BT",
            "patterns": ["BT INTERNET", "BRITISH TELECOM", "BT BROADBAND", "BT GROUP"],
            "category": "telecoms",
            "subcategory": "internet",
            "provider": "BT",
            "confidence_boost": 0.2,
        },
        {
            "name": "Virgin Media",
            "patterns": ["VIRGIN MEDIA", "VIRGIN M-NET", "VIRGINMEDIA"],
            "category": "telecoms",
            "subcategory": "tv_broadband",
            "provider": "Virgin Media",
            "confidence_boost": 0.2,
        },
        {
            "name": "TalkTalk",
            "patterns": ["TALKTALK", "TALK TALK"],
            "category": "telecoms",
            "subcategory": "internet",
            "provider": "TalkTalk",
            "confidence_boost": 0.2,
        },
    ],

    "general_rules": [
        {
            "name": "Direct Debit Pattern",
            "patterns": ["DIRECT DEBIT", "D/D"],
            "category": "other",
            "confidence_boost": 0.1,
            "min_occurrences": 3,
        },
        {
            "name": "Standing Order Pattern",
            "patterns": ["STANDING ORDER", "S/O"],
            "category": "other",
            "confidence_boost": 0.1,
            "min_occurrences": 2,
        },
    ],

    "settings": {
        "min_confidence_threshold": 0.7,
        "fuzzy_match_threshold": 0.75,
        "amount_variance_tolerance": 0.15,
    },
}


# Name-paths tried first when resolving a subcategory against a category tree
SUBCATEGORY_PATHS = {
    "gas": ["Bills", "Energy", "Gas"],
    "electricity": ["Bills", "Energy", "Electricity"],
    "dual_fuel": ["Bills", "Energy"],
    "water": ["Bills", "Water"],
    "internet": ["Bills", "Communications"],
    "broadband": ["Bills", "Communications"],
    "tv_broadband": ["Bills", "Communications"],
    "mobile": ["Bills", "Communications"],
    "streaming": ["Subscriptions", "Streaming"],
    "shopping_streaming": ["Subscriptions", "Streaming"],
    "music": ["Subscriptions", "Music"],
    "council_services": ["Bills", "Council Services"],
}

# Root category name used when no subcategory path resolves
CATEGORY_ROOT_NAMES = {
    "bills": "Bills",
    "utilities": "Bills",
    "council_tax": "Bills",
    "telecoms": "Bills",
    "other": "Bills",
    "subscription": "Subscriptions",
    "subscriptions": "Subscriptions",
    "insurance": "Insurance",
}

# Downstream record type per rule category
ENTRY_TYPES = {
    "bills": "utility",
    "utilities": "utility",
    "council_tax": "utility",
    "telecoms": "utility",
    "subscription": "utility",
    "subscriptions": "utility",
    "insurance": "policy",
}
