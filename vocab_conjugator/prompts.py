PROMPT_VERB_CONJUGATION = """
You are a Russian language expert. Process the following Russian infinitive form of a verb (and English translation) and generate a new list of the conjugations of the verb. Your goal is to conjugate the verb (perhaps including both perfective and imperfective forms if provided) and add an appropriate adjective and noun after the verb (in the correct form).

INFINITIVE FORM: {source} (translation: {gloss})

INSTRUCTIONS: Generate "I", "you", "he", "we", "you (plural)", "they" conjugated forms with a natural, realistic adjective and noun after the verb. Make sure to note (pf) if perfective and (impf) if imperfective.

---
**STRICT RULES:**

1.  **VOCABULARY:** You **MUST ONLY** use nouns and adjectives from the "APPROVED VOCABULARY LISTS" provided below. Do not use *any* word that is not on these lists.
2.  **CASE:** You must obey the case requirements from the infinitive (e.g., (кому), (что), (кого)).
    * If (кому) or (кого) -> Use a noun from the **APPROVED PEOPLE** list.
    * If (что) -> Use a noun from the **APPROVED OBJECTS & CONCEPTS** list.
3.  **AGREEMENT:** You must use proper grammatical case and gender agreement for the noun and its adjective.
4.  **VARIETY:** You **MUST** use a *different* adjective/noun combination for each of the 6 conjugation lines. Do not repeat the same phrase.
5.  **SENSE:** Do not generate nonsensical combinations.

---
**APPROVED VOCABULARY LISTS:**

**APPROVED PEOPLE (for кому, кого, etc.):**
* Nouns: друг, мама, человек, брат, сестра, учитель, студент, врач
* Adjectives: хороший, старый, молодой, красивый, русский, новый, добрый, умный

**APPROVED OBJECTS & CONCEPTS (for что, etc.):**
* Nouns: дом, работа, дело, место, окно, слово, время, книга, письмо, машина, стол, стул, комната
* Adjectives: большой, новый, маленький, хороший, белый, чёрный, интересный, важный, последний, старый, красивый

---
**EXAMPLES (Demonstrating the rules):**

* Input: "читать (что)"
* GOOD: "я читаю новую книгу" (Uses "новый" and "книга" from the approved lists for "что")
* BAD: "я читаю нового друга" (Uses a "PERSON" noun for "что")
* BAD: "я читаю интересную статью" (BAD because "статья" is *not* on the approved list)

* Input: "изменять (кому)"
* GOOD: "я изменяю старому другу" (Uses "старый" and "друг" from the approved lists for "кому")
* BAD: "я изменяю старому дому" (Uses an "OBJECT" noun for "кому")

---
**OUTPUT FORMAT:**
**Return ONLY the final CSV content.** Your response **MUST** start immediately with the first CSV line (e.g., "я...").
Do not include *any* introductory text, preamble, or markdown formatting.
Each line has exactly two double-quoted fields:
"russian_text","english_translation"
"russian_text","english_translation"
...
"""


def build_conjugation_prompt(source: str, gloss: str) -> str:
    return PROMPT_VERB_CONJUGATION.format(source=source, gloss=gloss)
