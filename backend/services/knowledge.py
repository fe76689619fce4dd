"""
Pest knowledge tables used when a provider answer cannot be parsed as JSON.

Tables are keyed language -> pest -> value. `resolve_entry` implements the
lookup chain shared with the mock generator: requested language, then
English, then the generic placeholder.
"""
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_PEST = "Unknown Pest"

# Checked in order; the first pest with any keyword in the text wins.
PEST_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("aphids", ["aphid", "माहू", "பூச்சி", "అఫిడ్స్"]),
    ("bollworm", ["bollworm", "बॉलवर्म", "காய்ப்புழு", "బాల్వార్మ్"]),
    ("whitefly", ["whitefly", "सफेद मक्खी", "வெள்ளை ஈ", "వైట్ఫ్లై"]),
    ("thrips", ["thrips", "थ्रिप्स", "த்ரிப்ஸ்", "థ్రిప్స్"]),
    ("mealybug", ["mealybug", "सूती कीड़ा", "பஞ்சு பூச்சி", "మీలీబగ్"]),
]

GENERIC_PLACEHOLDER: Dict[str, Any] = {
    "description": "Pest requiring identification",
    "symptoms": ["Requires inspection", "Monitor closely"],
    "treatment": ["Regular monitoring required"],
    "prevention": ["Maintain good practices"],
    "cropsDamaged": ["multiple crops"],
    "seasonality": "Season dependent",
}

DESCRIPTIONS = {
    "en": {
        "Aphids": "Small soft-bodied insects that feed on plant sap",
        "Bollworm": "Caterpillar pest that damages cotton bolls and fruits",
        "Whitefly": "Small white flying insects that suck plant juices",
        UNKNOWN_PEST: "Pest or disease requiring further identification",
    },
    "hi": {
        "Aphids": "छोटे कोमल शरीर वाले कीड़े जो पौधों का रस चूसते हैं",
        "Bollworm": "सूंडी कीट जो कपास और फलों को नुकसान पहुंचाता है",
        "Whitefly": "छोटी सफेद उड़ने वाली मक्खी जो पौधों का रस चूसती है",
        UNKNOWN_PEST: "कीट या रोग जिसकी और पहचान की आवश्यकता है",
    },
}

SYMPTOMS = {
    "en": {
        "Aphids": ["Yellowing leaves", "Sticky honeydew", "Curled leaves", "Stunted growth"],
        "Bollworm": ["Holes in bolls", "Damaged fruits", "Frass deposits", "Entry holes"],
        "Whitefly": ["Yellowing leaves", "Sooty mold", "Reduced vigor", "Sticky honeydew"],
        UNKNOWN_PEST: ["Visible damage", "Discoloration", "Abnormal growth"],
    },
    "hi": {
        "Aphids": ["पीली पत्तियां", "चिपचिपा पदार्थ", "मुड़ी पत्तियां", "रुका विकास"],
        "Bollworm": ["बोल्स में छेद", "क्षतिग्रस्त फल", "कीट मल", "प्रवेश छेद"],
        "Whitefly": ["पीली पत्तियां", "काली फफूंद", "कम ताकत", "चिपचिपा पदार्थ"],
        UNKNOWN_PEST: ["दिखाई देने वाला नुकसान", "रंग में बदलाव", "असामान्य विकास"],
    },
}

TREATMENTS = {
    "en": {
        "Aphids": ["Spray with water", "Apply neem oil", "Use insecticidal soap"],
        "Bollworm": ["Pheromone traps", "Bt spray", "Hand picking"],
        "Whitefly": ["Yellow sticky traps", "Reflective mulch", "Neem oil"],
        UNKNOWN_PEST: ["Monitor regularly", "Apply neem oil", "Consult expert"],
    },
    "hi": {
        "Aphids": ["पानी का छिड़काव", "नीम का तेल", "कीटनाशक साबुन"],
        "Bollworm": ["फेरोमोन जाल", "बीटी स्प्रे", "हाथ से चुनना"],
        "Whitefly": ["पीले चिपचिपे जाल", "परावर्तक मल्च", "नीम का तेल"],
        UNKNOWN_PEST: ["नियमित निगरानी", "नीम का तेल", "विशेषज्ञ से सलाह"],
    },
}

PREVENTION = {
    "en": {
        "Aphids": ["Remove weeds", "Encourage beneficial insects", "Regular monitoring"],
        "Bollworm": ["Crop rotation", "Border crops", "Early harvesting"],
        "Whitefly": ["Crop rotation", "Remove infected plants", "Companion planting"],
        UNKNOWN_PEST: ["Regular inspection", "Clean cultivation", "Proper spacing"],
    },
    "hi": {
        "Aphids": ["खरपतवार हटाएं", "लाभकारी कीटों को बढ़ावा", "नियमित निगरानी"],
        "Bollworm": ["फसल चक्र", "सीमावर्ती फसलें", "जल्दी कटाई"],
        "Whitefly": ["फसल चक्र", "संक्रमित पौधे हटाएं", "साथी बागवानी"],
        UNKNOWN_PEST: ["नियमित जांच", "स्वच्छ खेती", "उचित दूरी"],
    },
}

# Crop names are not localized in the source data.
CROPS_DAMAGED = {
    "en": {
        "Aphids": ["wheat", "cotton", "potato", "tomato"],
        "Bollworm": ["cotton", "tomato", "chilli", "maize"],
        "Whitefly": ["cotton", "tomato", "potato", "sugarcane"],
        UNKNOWN_PEST: ["various crops"],
    },
}

SEASONALITY = {
    "en": {
        "Aphids": "Spring and summer months",
        "Bollworm": "Monsoon season",
        "Whitefly": "Year-round in warm climates",
        UNKNOWN_PEST: "Season dependent",
    },
    "hi": {
        "Aphids": "वसंत और गर्मी के महीने",
        "Bollworm": "मानसून का मौसम",
        "Whitefly": "गर्म जलवायु में साल भर",
        UNKNOWN_PEST: "मौसम पर निर्भर",
    },
}

ORGANIC_TREATMENT = ["Neem oil spray", "Beneficial insects", "Organic pesticides"]
CHEMICAL_TREATMENT = ["Imidacloprid", "Thiamethoxam", "Expert consultation required"]

_MISSING = object()


def resolve_entry(table: Dict[str, Dict[str, Any]], language: str, key: str, default: Any = _MISSING) -> Any:
    """Look `key` up for `language`, then English, then return `default`.

    Raises KeyError only when nothing matches and no default was given.
    """
    for lang in (language, "en"):
        entries = table.get(lang)
        if entries and key in entries:
            return entries[key]
    if default is _MISSING:
        raise KeyError(key)
    return default


def detect_pest(text: Optional[str]) -> Optional[str]:
    """Return the canonical pest name mentioned in `text`, or None."""
    lowered = (text or "").lower()
    if not lowered:
        return None
    for pest, keywords in PEST_KEYWORDS:
        if any(keyword.lower() in lowered for keyword in keywords):
            return pest.capitalize()
    return None


def pest_profile(pest: str, language: str) -> Dict[str, Any]:
    """Assemble the descriptive fields for `pest` in `language`."""
    return {
        "description": resolve_entry(DESCRIPTIONS, language, pest, GENERIC_PLACEHOLDER["description"]),
        "symptoms": list(resolve_entry(SYMPTOMS, language, pest, GENERIC_PLACEHOLDER["symptoms"])),
        "treatment": list(resolve_entry(TREATMENTS, language, pest, GENERIC_PLACEHOLDER["treatment"])),
        "prevention": list(resolve_entry(PREVENTION, language, pest, GENERIC_PLACEHOLDER["prevention"])),
        "organicTreatment": list(ORGANIC_TREATMENT),
        "chemicalTreatment": list(CHEMICAL_TREATMENT),
        "cropsDamaged": list(resolve_entry(CROPS_DAMAGED, language, pest, GENERIC_PLACEHOLDER["cropsDamaged"])),
        "seasonality": resolve_entry(SEASONALITY, language, pest, GENERIC_PLACEHOLDER["seasonality"]),
    }
