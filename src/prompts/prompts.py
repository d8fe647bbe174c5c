"""Prompt templates for the interpreter and the two plan stages.

Every template is a pure function of its explicit parameters; nothing here holds
mutable state. Each prompt demands exactly one JSON object, and callers still run
the output through extract_first_json_object() and schema validation.
"""

from typing import Sequence


# Ingredients the plan stage may add to a shopping list without them being in the recipe
PANTRY_STAPLES = ("salt", "black pepper", "cooking oil", "butter", "onion", "garlic", "water")

# Fixed shopping list categories, in display order
SHOPPING_CATEGORIES = ("produce", "pantry", "protein", "dairy", "spices", "optional")


def interpret_prompt(user_input: str) -> str:
    """Build the prompt that turns free text into normalized ingredients + constraints.

    Args:
        user_input: Raw text as typed by the user (any language).

    Returns:
        str: Prompt asking for {"ingredients": [...], "constraints": {...}}.
    """
    return f"""Return STRICT JSON only (no markdown).
Schema:
{{"ingredients":["..."],"constraints":{{"quick":true|false,"notSpicy":true|false}}}}

Rules:
- Only include ingredients explicitly written by the user. Do NOT add or infer ingredients.
- Translate ingredients to English if needed (the recipe catalog is English). Translation must be 1:1 (no extra ingredients).
- Normalize ingredients: lowercase, replace '_' with space, trim, singularize simple plurals when appropriate.
- If unsure whether a word is an ingredient, ignore it.
- Detect constraints in ANY language:
  - quick=true if the user implies fast/quick cooking
  - notSpicy=true if the user implies not spicy/mild/no heat
- Always include both constraint keys. If not mentioned, set false.
- No duplicates. Keep ingredients short (1-3 words).

Examples:
Input: chicken, quick, not spicy
Output: {{"ingredients":["chicken"],"constraints":{{"quick":true,"notSpicy":true}}}}

Input: kyckling, citron, vitlök, snabbt, inte starkt
Output: {{"ingredients":["chicken","lemon","garlic"],"constraints":{{"quick":true,"notSpicy":true}}}}

User input: {user_input}
Output:
"""


def _constraint_line(quick: bool, not_spicy: bool) -> str:
    wanted = []
    if quick:
        wanted.append("quick to cook")
    if not_spicy:
        wanted.append("not spicy")
    return ", ".join(wanted) if wanted else "none"


def rank_prompt(
    user_input: str,
    ingredients: Sequence[str],
    quick: bool,
    not_spicy: bool,
    context: str,
) -> str:
    """Build the rank-stage prompt.

    The model only orders the candidates in CONTEXT; shopping lists and timelines
    belong to the plan stage.

    Args:
        user_input: Raw user text, for tone and intent.
        ingredients: Interpreted ingredient names.
        quick: Interpreted "quick" constraint.
        not_spicy: Interpreted "not spicy" constraint.
        context: Candidate blocks, each starting with "Recipe: <name> (ID: <id>)".

    Returns:
        str: Prompt asking for {"picks": [...], "sources": [...]}.
    """
    return f"""You are a cooking assistant.

Goal: rank recipes for simplicity + match to the user's fridge ingredients.
You MUST NOT create shopping lists or timelines. Only ranking.

Output MUST be a single valid JSON object.
No markdown. No extra text.

User input:
{user_input}

Interpreted ingredients:
{", ".join(ingredients)}

Constraints:
{_constraint_line(quick, not_spicy)}

TASK:
1) Rank recipes best to worst for simplicity and ingredient match.
2) picks MUST include EVERY recipe ID present in CONTEXT exactly once.
3) sources MUST match picks IDs exactly in the same order (IDs only).

STRICT JSON RULES (MUST FOLLOW):
- Each picks item MUST contain ALL keys: id, name, simplicityScore, why
- why is REQUIRED for EVERY pick. If you cannot think of a good why, set: "why": "simple"
- simplicityScore MUST be a number 0..10 (not a string).

why RULES:
- max 12 words
- concrete (fewer steps/ingredients/faster), mention tradeoff if relevant
- never empty

RECIPE DETECTION:
- In CONTEXT, each recipe starts with: "Recipe: <name> (ID: <id>)"
- Extract all IDs from those lines.

HARD COUNT REQUIREMENT:
- picks MUST contain EXACTLY as many items as "Recipe:" lines in CONTEXT.
- sources = [picks[0].id, picks[1].id, ...]

EXAMPLE OUTPUT (VALID):
{{
  "picks": [
    {{ "id":"111", "name":"Recipe A", "simplicityScore": 8, "why":"few ingredients, quick prep" }},
    {{ "id":"222", "name":"Recipe B", "simplicityScore": 6, "why":"more steps, but uses ingredients" }}
  ],
  "sources": ["111","222"]
}}

CONTEXT:
{context}
"""


def plan_prompt(interpreted_json: str, context: str) -> str:
    """Build the plan-stage prompt for the single top-pick recipe.

    Args:
        interpreted_json: The interpreted query serialized as JSON.
        context: Exactly one recipe: header, instructions and "- ingredient — measure" lines.

    Returns:
        str: Prompt asking for {"shoppingList": {...}, "timeline": [...]}.
    """
    categories = ", ".join(SHOPPING_CATEGORIES)
    category_schema = ",\n".join(f'    "{name}": [ "item — qty" ]' for name in SHOPPING_CATEGORIES)
    return f"""You are a cooking assistant.

Use ONLY the recipe in CONTEXT. Do not invent anything.
Output MUST be a single valid JSON object matching the schema below.
No markdown. No extra text.

Interpreted (JSON):
{interpreted_json}

TASK:
Create:
- shoppingList (from the Ingredients list + pantry staples)
- timeline (FULL cooking timeline including prep + waiting + cooking time)

STRICT NO MIXING:
- CONTEXT contains exactly 1 recipe.
- Do NOT include anything not in its Ingredients list (except pantry staples).

PANTRY STAPLES ALLOWED (only if needed):
{", ".join(PANTRY_STAPLES)}

SHOPPING LIST RULES (MUST FOLLOW):
- shoppingList MUST include keys: {categories} (use [] if empty).
- Values MUST be arrays of STRINGS only.
- Each item MUST be in the exact format: "name — qty"
- If qty is unknown, use: "to taste" or "as needed" or "1".
- Do NOT include empty strings.
- Max 10 items per category.

TIMELINE RULES (FULL COOKING TIME):
- timeline MUST contain 6 to 12 steps.
- Include prep steps, any marinating/refrigerating/resting time, heating time, cooking time, serving.
- Steps MUST be chronological and increasing (fromMin < toMin).
- Final timeline step MUST be serving/plating.
- Each step max 16 words.
- Use the recipe's actual times when present (e.g. refrigerate 60 minutes).

Return JSON schema (must include ALL keys):
{{
  "shoppingList": {{
{category_schema}
  }},
  "timeline": [
    {{ "fromMin": 0, "toMin": 5, "step": "..." }}
  ]
}}

CONTEXT:
{context}
"""
