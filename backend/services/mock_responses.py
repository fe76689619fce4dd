"""
Mock Response Generator
Curated answers served when every live provider has failed, so the farmer
always gets a usable response. Vision answers are picked at random from a
small per-language set; chat answers are keyed by topic words in the query.
"""
import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from backend.schemas import ChatResult, StructuredResult
from backend.services.knowledge import resolve_entry

logger = logging.getLogger(__name__)

VISION_MOCKS: Dict[str, Dict[str, List[Dict[str, Any]]]] = {
    "en": {
        "records": [
            {
                "pestName": "General Pest Issue",
                "confidence": 75,
                "severity": "medium",
                "description": "Plant issue detected in the image",
                "symptoms": ["Leaf changes", "Unusual coloration", "Growth hindrance"],
                "treatment": ["Apply neem oil spray", "Remove affected parts", "Consult agricultural expert"],
                "prevention": ["Regular monitoring", "Proper irrigation", "Clean cultivation"],
                "organicTreatment": ["Neem oil", "Organic pesticides", "Beneficial insects"],
                "chemicalTreatment": ["Approved pesticides", "Expert consultation required"],
                "cropsDamaged": ["Common crops"],
                "seasonality": "Common during monsoon season",
            },
            {
                "pestName": "Aphids",
                "confidence": 80,
                "severity": "high",
                "description": "Small insects that feed on plant sap",
                "symptoms": ["Yellowing leaves", "Sticky honeydew", "Curled leaves"],
                "treatment": ["Spray with water", "Apply neem oil", "Use insecticidal soap"],
                "prevention": ["Remove weeds", "Encourage beneficial insects", "Regular monitoring"],
                "organicTreatment": ["Neem oil spray", "Ladybug release", "Garlic spray"],
                "chemicalTreatment": ["Imidacloprid", "Thiamethoxam", "Acetamiprid"],
                "cropsDamaged": ["Wheat", "Corn", "Tomato"],
                "seasonality": "Spring and summer",
            },
            {
                "pestName": "Bollworm",
                "confidence": 85,
                "severity": "high",
                "description": "Caterpillar pest that damages cotton bolls and other crops",
                "symptoms": ["Holes in bolls", "Damaged fruits", "Frass deposits", "Wilting"],
                "treatment": ["Pheromone traps", "Bt spray", "Hand picking"],
                "prevention": ["Crop rotation", "Border crops", "Early harvesting"],
                "organicTreatment": ["Bacillus thuringiensis", "Neem extract", "Trichogramma release"],
                "chemicalTreatment": ["Chlorantraniliprole", "Spinosad", "Emamectin benzoate"],
                "cropsDamaged": ["Cotton", "Corn", "Barley"],
                "seasonality": "Monsoon season",
            },
        ],
    },
    "hi": {
        "records": [
            {
                "pestName": "सामान्य कीट समस्या",
                "confidence": 75,
                "severity": "medium",
                "description": "छवि में पौधे की समस्या दिखाई दे रही है",
                "symptoms": ["पत्तियों में बदलाव", "असामान्य रंग", "विकास में बाधा"],
                "treatment": ["नीम का तेल छिड़काव", "प्रभावित भागों को हटाएं", "कृषि विशेषज्ञ से सलाह लें"],
                "prevention": ["नियमित निगरानी", "सही सिंचाई", "स्वच्छ खेती"],
                "organicTreatment": ["नीम का तेल", "गोमूत्र छिड़काव", "हर्बल कीटनाशक"],
                "chemicalTreatment": ["अनुमोदित कीटनाशक", "विशेषज्ञ सलाह आवश्यक"],
                "cropsDamaged": ["सामान्य फसलें"],
                "seasonality": "मानसून के दौरान सामान्य",
            },
            {
                "pestName": "माहू (Aphids)",
                "confidence": 80,
                "severity": "high",
                "description": "छोटे कीड़े जो पौधों का रस चूसते हैं",
                "symptoms": ["पत्तियों का पीला होना", "चिपचिपा पदार्थ", "मुड़ी हुई पत्तियाँ"],
                "treatment": ["पानी का छिड़काव", "नीम तेल लगाएं", "कीटनाशक साबुन का उपयोग"],
                "prevention": ["खरपतवार हटाएं", "लाभकारी कीड़ों को बढ़ावा दें", "नियमित निगरानी"],
                "organicTreatment": ["नीम तेल स्प्रे", "लेडीबग रिलीज़", "लहसुन स्प्रे"],
                "chemicalTreatment": ["इमिडाक्लोप्रिड", "थायामेथॉक्साम", "एसिटामिप्रिड"],
                "cropsDamaged": ["गेहूं", "मकई", "टमाटर"],
                "seasonality": "वसंत और गर्मी",
            },
            {
                "pestName": "बॉलवर्म (Bollworm)",
                "confidence": 85,
                "severity": "high",
                "description": "कैटरपिलर कीट जो कपास और अन्य फसलों को नुकसान पहुंचाता है",
                "symptoms": ["फलों में छेद", "क्षतिग्रस्त फल", "मल जमा", "मुरझाना"],
                "treatment": ["फेरोमोन ट्रैप", "बीटी स्प्रे", "हाथ से चुनना"],
                "prevention": ["फसल चक्र", "सीमांत फसलें", "जल्दी कटाई"],
                "organicTreatment": ["बैसिलस थुरिंजेंसिस", "नीम अर्क", "ट्राइकोग्रामा छोड़ना"],
                "chemicalTreatment": ["क्लोरेंट्रानिलिप्रोल", "स्पिनोसाड", "इमामेक्टिन बेंजोएट"],
                "cropsDamaged": ["कपास", "मकई", "जौ"],
                "seasonality": "मानसून का मौसम",
            },
        ],
    },
}

HI_CHAT_TOPICS: List[Tuple[Tuple[str, ...], str]] = [
    (("गेहूं", "wheat"), """🌾 गेहूं की खेती के लिए संपूर्ण गाइड:

1. **बुवाई का समय**: अक्टूबर-नवंबर (रबी सीजन)
2. **बीज दर**: 100-120 किलो प्रति हेक्टेयर
3. **उर्वरक**: NPK (120:60:40) किलो प्रति हेक्टेयर
4. **सिंचाई**: 4-6 सिंचाई की आवश्यकता
5. **कीट नियंत्रण**: नियमित निगरानी, नीम का तेल
6. **कटाई**: 120-130 दिन में तैयार

💡 उत्पादन: 25-30 क्विंटल प्रति हेक्टेयर
📞 सलाह: स्थानीय कृषि विभाग से संपर्क करें।"""),
    (("टमाटर", "tomato"), """🍅 टमाटर की संपूर्ण देखभाल:

1. **मौसम**: साल भर (सिंचित क्षेत्र)
2. **तापमान**: 20-25°C आदर्श
3. **मिट्टी**: दोमट मिट्टी, pH 6.0-7.0
4. **पानी प्रबंधन**: ड्रिप सिंचाई सर्वोत्तम
5. **मुख्य रोग**: अगेती झुलसा, पछेती झुलसा
6. **कीट नियंत्रण**: नीम का तेल छिड़काव
7. **कटाई**: 70-80 दिन में फल तैयार

💰 उत्पादन: 300-500 क्विंटल प्रति हेक्टेयर
✨ सफल खेती के लिए नियमित देखभाल जरूरी है।"""),
]

HI_CHAT_DEFAULT = """🙏 आपके कृषि संबंधी प्रश्न के लिए धन्यवाद!

यहाँ कुछ सामान्य खेती के सुझाव हैं:

1. **मिट्टी की स्वास्थ्य**: नियमित जांच और जैविक खाद का उपयोग
2. **फसल चक्र**: बेहतर पैदावार के लिए फसल चक्र अपनाएं
3. **पानी का प्रबंधन**: कुशल सिंचाई प्रणाली अपनाएं
4. **कीट नियंत्रण**: एकीकृत कीट प्रबंधन (IPM) अपनाएं
5. **मौसम आधारित सलाह**: मौसम की जानकारी रखें

💡 विशिष्ट सलाह के लिए, कृपया अपनी फसल और स्थान के बारे में अधिक जानकारी प्रदान करें।

📱 अन्य टूल्स का भी उपयोग करें: मौसम डैशबोर्ड, मिट्टी गाइड, बाजार मूल्य।"""

EN_CHAT_TOPICS: List[Tuple[Tuple[str, ...], str]] = [
    (("fertilizer", "soil"), """🌱 Soil and Fertilizer Management Guide:

1. **Soil Testing**: Get soil tested every 2-3 years
2. **Organic Matter**: Add 5-10 tonnes compost per hectare
3. **NPK Balance**: Apply based on soil test results
4. **pH Management**: Maintain pH between 6.0-7.5
5. **Micronutrients**: Apply zinc, boron as needed
6. **Timing**: Apply fertilizers at right growth stages

💡 **Pro Tips**:
- Use bio-fertilizers for sustainable farming
- Practice green manuring
- Avoid over-fertilization

📞 Consult local agricultural experts for soil-specific advice."""),
    (("irrigation", "water"), """💧 Smart Irrigation Practices:

1. **Timing**: Early morning (6-8 AM) or evening (4-6 PM)
2. **Frequency**: Based on soil moisture and crop stage
3. **Methods**:
   - Drip irrigation (90% efficiency)
   - Sprinkler system (75-85% efficiency)
   - Furrow irrigation (60-70% efficiency)
4. **Water Quality**: EC should be < 2.0 dS/m
5. **Scheduling**: Use tensiometers for precise timing

🎯 **Benefits**:
- 20-30% water savings
- Better crop yield
- Reduced disease incidence

💡 Consider mulching to reduce water evaporation."""),
    (("pest", "insect"), """🐛 Integrated Pest Management (IPM):

1. **Prevention First**:
   - Crop rotation
   - Resistant varieties
   - Clean cultivation

2. **Monitoring**:
   - Weekly field inspection
   - Pheromone traps
   - Yellow sticky traps

3. **Biological Control**:
   - Beneficial insects
   - Neem-based pesticides
   - Bacillus thuringiensis

4. **Chemical Control** (last resort):
   - Use recommended pesticides
   - Follow label instructions
   - Maintain pre-harvest interval

🌿 **Organic Options**: Neem oil, garlic spray, soap solution
⚠️ Always wear protective equipment when spraying."""),
]

EN_CHAT_DEFAULT = """🌾 **Agricultural Guidance System**

Thank you for your farming question! Here's comprehensive advice:

**🌱 Soil Health**:
- Regular soil testing
- Organic matter addition
- Balanced fertilization

**💧 Water Management**:
- Efficient irrigation systems
- Rainwater harvesting
- Mulching practices

**🛡️ Crop Protection**:
- Integrated pest management
- Disease monitoring
- Preventive measures

**📈 Yield Optimization**:
- Quality seeds/seedlings
- Proper spacing
- Timely operations

**🌐 Modern Techniques**:
- Precision farming
- Weather-based advisories
- Mobile apps for guidance

💡 **For specific advice**, please provide:
- Your location/state
- Crop type and variety
- Current growth stage
- Specific problem/concern

📱 **Use other tools**: Weather Dashboard, Soil Guide, Market Prices, Pest Detection"""

CHAT_MOCKS: Dict[str, Dict[str, Any]] = {
    "en": {"topics": EN_CHAT_TOPICS, "default": EN_CHAT_DEFAULT},
    "hi": {"topics": HI_CHAT_TOPICS, "default": HI_CHAT_DEFAULT},
}


class MockResponseGenerator:
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def generate(self, language: str, hint: Optional[str] = None) -> StructuredResult:
        """Pick one curated record for `language` (English when unsupported).

        Confidence is returned exactly as curated. `hint` is only logged:
        selection stays uniform so the fallback never pretends to have seen
        the image.
        """
        records = resolve_entry(VISION_MOCKS, language, "records")
        record = self._rng.choice(records)
        logger.info("[mock] serving curated vision answer %r (language=%s, hint=%s)",
                    record["pestName"], language, hint)
        return StructuredResult(**record)

    def generate_chat(self, language: str, query: Optional[str] = None) -> ChatResult:
        bundle = resolve_entry(CHAT_MOCKS, language, "topics", None)
        default = resolve_entry(CHAT_MOCKS, language, "default")
        lowered = (query or "").lower()
        for keywords, answer in bundle or []:
            if any(k in lowered for k in keywords):
                return ChatResult(content=answer)
        return ChatResult(content=default)
