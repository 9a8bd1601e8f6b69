"""Demo scenarios served to the voice capture frontend."""

from voiceflow.extraction.schema import CamelModel, Language
from voiceflow.transcription.service import SAMPLE_TRANSCRIPTS


class DemoScenario(CamelModel):
    id: str
    title: str
    language: Language
    business_type: str
    description: str
    voice_input: str
    translation: str


DEMO_SCENARIOS: list[DemoScenario] = [
    DemoScenario(
        id="thai-street-food",
        title="Thai Street Food Vendor",
        language="th",
        business_type="street food",
        description="A street food vendor in Bangkok selling pad thai and som tam",
        voice_input=SAMPLE_TRANSCRIPTS["th"],
        translation="Customer bought 3 pad thai and 2 som tam, total 250 baht",
    ),
    DemoScenario(
        id="indonesian-repair-shop",
        title="Indonesian Motor Repair Shop",
        language="id",
        business_type="repair shop",
        description="A motorcycle repair shop in Jakarta providing oil change and brake pad service",
        voice_input=SAMPLE_TRANSCRIPTS["id"],
        translation=(
            "Mr. Budi motorcycle service, oil change and brake pads, "
            "total 350 thousand, pay next week"
        ),
    ),
    DemoScenario(
        id="filipino-sari-sari",
        title="Filipino Sari-Sari Store",
        language="tl",
        business_type="sari-sari store",
        description="A neighborhood convenience store in Manila selling canned goods and coffee",
        voice_input=SAMPLE_TRANSCRIPTS["tl"],
        translation="Maria bought 3 canned goods, 2 packs of coffee, 150 pesos, installment",
    ),
    DemoScenario(
        id="vietnamese-tailor",
        title="Vietnamese Tailor Shop",
        language="vi",
        business_type="tailor",
        description="A tailor shop in Ho Chi Minh City making ao dai with deposit payment",
        voice_input=SAMPLE_TRANSCRIPTS["vi"],
        translation=(
            "Sister Lan tailor ao dai, deposit 500 thousand, remaining 1 million when finished"
        ),
    ),
    DemoScenario(
        id="english-retail",
        title="English Retail Store",
        language="en",
        business_type="retail",
        description="A clothing store selling shirts and pants with delayed payment",
        voice_input=SAMPLE_TRANSCRIPTS["en"],
        translation=SAMPLE_TRANSCRIPTS["en"],
    ),
]
