"""Search query variants for Cyrillic input.

FatSecret's basic tier only matches Latin text, so Russian queries are sent
as a dictionary translation first and a transliteration second.
"""

import logging
import re

_CYRILLIC = re.compile(r"[а-яА-ЯёЁ]")

_TRANSLITERATION = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sch", "ъ": "",
    "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}  # fmt: skip

_FOOD_TERMS = {
    # dairy
    "молоко": "milk",
    "кефир": "kefir",
    "йогурт": "yogurt",
    "творог": "cottage cheese",
    "сметана": "sour cream",
    "сыр": "cheese",
    "масло": "butter",
    "сливки": "cream",
    # meat and fish
    "курица": "chicken",
    "говядина": "beef",
    "свинина": "pork",
    "рыба": "fish",
    "лосось": "salmon",
    "тунец": "tuna",
    "индейка": "turkey",
    "баранина": "lamb",
    "колбаса": "sausage",
    # grains
    "хлеб": "bread",
    "рис": "rice",
    "гречка": "buckwheat",
    "овсянка": "oatmeal",
    "макароны": "pasta",
    "каша": "porridge",
    "мука": "flour",
    # vegetables
    "картофель": "potato",
    "картошка": "potato",
    "помидор": "tomato",
    "огурец": "cucumber",
    "морковь": "carrot",
    "капуста": "cabbage",
    "лук": "onion",
    "чеснок": "garlic",
    "перец": "pepper",
    "свекла": "beet",
    # fruit
    "яблоко": "apple",
    "банан": "banana",
    "апельсин": "orange",
    "груша": "pear",
    "виноград": "grape",
    "клубника": "strawberry",
    "арбуз": "watermelon",
    # dishes
    "борщ": "borscht",
    "щи": "shchi",
    "пельмени": "dumplings",
    "блины": "pancakes",
    "оладьи": "pancakes",
    "котлета": "cutlet",
    "салат": "salad",
    "суп": "soup",
    # drinks
    "чай": "tea",
    "кофе": "coffee",
    "сок": "juice",
    "вода": "water",
    "квас": "kvass",
    # other
    "яйцо": "egg",
    "яйца": "eggs",
    "сахар": "sugar",
    "соль": "salt",
    "мед": "honey",
    "орех": "nut",
    "орехи": "nuts",
    "шоколад": "chocolate",
}

_logger = logging.getLogger(__name__)


def is_cyrillic(text: str) -> bool:
    """Return True if the text contains any Cyrillic letter."""
    return bool(_CYRILLIC.search(text))


def transliterate(text: str) -> str:
    """Transliterate Cyrillic letters to Latin, keeping everything else."""
    result: list[str] = []
    for char in text:
        latin = _TRANSLITERATION.get(char.lower())
        if latin is None:
            result.append(char)
        elif char.isupper():
            result.append(latin.capitalize())
        else:
            result.append(latin)
    return "".join(result)


def translate_food(text: str) -> str | None:
    """Translate a known Russian food term, by exact then substring match."""
    normalized = text.strip().lower()
    if normalized in _FOOD_TERMS:
        return _FOOD_TERMS[normalized]
    for russian, english in _FOOD_TERMS.items():
        if russian in normalized:
            return english
    return None


def search_variants(query: str) -> list[str]:
    """Return query variants to try against FatSecret, best first."""
    normalized = query.strip()
    if not is_cyrillic(normalized):
        return [normalized]

    variants: list[str] = []
    translation = translate_food(normalized)
    if translation:
        variants.append(translation)
    transliterated = transliterate(normalized)
    if transliterated != normalized and transliterated not in variants:
        variants.append(transliterated)
    if not variants:
        variants.append(normalized)
    _logger.debug("Generated search variants: query=%s variants=%s", normalized, variants)
    return variants
