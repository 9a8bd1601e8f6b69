"""Prompt construction for transaction extraction.

Each supported language contributes its currency, the informal payment-term
vocabulary small business owners actually use, and how numbers are spoken.
"""

from dataclasses import dataclass

from voiceflow.extraction.schema import currency_for, normalize_language

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "id": "Indonesian",
    "th": "Thai",
    "vi": "Vietnamese",
    "tl": "Filipino",
}

INFORMAL_PAYMENT_TERMS: dict[str, list[str]] = {
    "id": ["bayar nanti", "minggu depan", "bulan depan", "hulugan", "cicilan"],
    "th": ["จ่ายทีหลัง", "สัปดาห์หน้า", "เดือนหน้า"],
    "vi": ["trả sau", "tuần sau", "tháng sau"],
    "tl": ["bayad mamaya", "next week", "hulugan"],
    "en": ["pay later", "next week", "installment", "due next month"],
}

NUMBER_CONVENTIONS: dict[str, str] = {
    "id": 'Indonesian: "lima ratus ribu" = 500,000, "satu juta" = 1,000,000',
    "th": 'Thai: "ห้าร้อยบาท" = 500, "สองพันบาท" = 2,000',
    "vi": 'Vietnamese: "năm trăm nghìn" = 500,000, "một triệu" = 1,000,000',
    "tl": 'Filipino: "limang daan" = 500, "isang libo" = 1,000',
    "en": "English: standard number formats",
}

BUSINESS_CONTEXTS: list[str] = [
    "street food",
    "repair shop",
    "sari-sari store",
    "tailor",
    "retail",
    "general",
]

SYSTEM_PROMPT = """You are a specialized financial assistant for Southeast Asian small businesses. \
You understand natural, colloquial speech patterns and informal business terms commonly used in the region.

CRITICAL INSTRUCTIONS:
1. Parse the {language_name} business transaction spoken naturally by a small business owner
2. Understand cultural payment terms like "bayar nanti" (pay later), "hulugan" (installment)
3. Convert spoken numbers correctly: {number_convention}
4. Identify business context ({business_contexts})
5. Extract customer relationships (Pak Budi, Si Maria, Chị Lan = familiar customers)
6. Return ONLY valid JSON with no additional text

Currency: {currency}
Common informal terms in {language_name}: {informal_terms}"""

USER_PROMPT = """Parse this {language} transaction and extract structured data:
"{transcript}"

Return a single JSON object in this exact format, with no text before or after it:
{{
  "items": [
    {{
      "name": "item name",
      "quantity": 1,
      "unitPrice": 0,
      "total": 0
    }}
  ],
  "customer": {{
    "name": "customer name if mentioned",
    "contact": "contact info if mentioned"
  }},
  "total": 0,
  "currency": "{currency}",
  "paymentTerms": "immediate/later/installment/credit",
  "dueDate": "YYYY-MM-DD or relative like 'next week'",
  "businessType": "one of: {business_contexts}",
  "language": "{language}",
  "metadata": {{
    "confidence": 0.95,
    "extractedEntities": ["list", "of", "key", "entities"]
  }}
}}"""


@dataclass(frozen=True)
class ExtractionPrompt:
    """System and user instructions for a single extraction call."""

    system: str
    user: str


class PromptBuilder:
    """Builds language-aware extraction prompts."""

    def build(self, transcript: str, language: str) -> ExtractionPrompt:
        """Build the system + user prompt pair for a transcript.

        Args:
            transcript: Transcribed speech
            language: Language code of the transcript

        Returns:
            ExtractionPrompt demanding a single TransactionData-shaped JSON object
        """
        language = normalize_language(language)
        currency = currency_for(language)
        business_contexts = ", ".join(BUSINESS_CONTEXTS)

        system = SYSTEM_PROMPT.format(
            language_name=LANGUAGE_NAMES[language],
            number_convention=NUMBER_CONVENTIONS[language],
            business_contexts=business_contexts,
            currency=currency,
            informal_terms=", ".join(INFORMAL_PAYMENT_TERMS[language]),
        )
        user = USER_PROMPT.format(
            language=language,
            transcript=transcript.strip(),
            currency=currency,
            business_contexts=business_contexts,
        )
        return ExtractionPrompt(system=system, user=user)
