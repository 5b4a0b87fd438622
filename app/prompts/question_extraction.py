# Prompt and output schema for exam-question extraction.
# - The instruction text carries the classification rules the schema cannot
#   express (answer-type heuristics, verbatim extraction, option labels).
# - The function declaration forces a structured `return_questions` call;
#   keep its field names in sync with the instruction text and with
#   app.services.extraction.question_builder.

ANSWER_TYPES = ("single", "multi", "true_false", "short_answer", "essay")

RETURN_QUESTIONS_FUNCTION = "return_questions"

# =============================================================================
# QUESTION EXTRACTION PROMPT
# =============================================================================
QUESTION_EXTRACTION_PROMPT = r"""
You are an expert exam question parser. Extract ALL questions from this exam PDF with their complete information.

Output a JSON object with this EXACT structure:
{
  "questions": [
    {
      "q_no": <question_number>,
      "section": "<section_name_if_mentioned>",
      "text": "<full_question_text>",
      "options": ["option1", "option2", "option3", "option4"],
      "answer_type": "single|multi|true_false|short_answer|essay",
      "answer_hint": "<any_hints_or_answers_if_provided>",
      "confidence": <0.0_to_1.0>
    }
  ]
}

CRITICAL INSTRUCTIONS FOR ANSWER TYPES:

1. **single**: Use when question has 2+ distinct answer choices and ONE correct answer (A/B/C/D, etc.)
   - MUST extract ALL options into the "options" array
   - Include option labels (A), B), etc.) in the text
   - Example: ["A) 5", "B) 10", "C) 15", "D) 20"]

2. **multi**: Use when question has multiple correct answers (Select all that apply)
   - Same extraction rules as single

3. **true_false**: Use ONLY when question explicitly has True/False or Yes/No options
   - options: ["True", "False"] or ["Yes", "No"]

4. **short_answer**: Use when question expects a brief answer (number, word, short phrase)
   - Set options to null or empty array []

5. **essay**: Use when question expects a long written response
   - Set options to null or empty array []

EXTRACTION RULES:
- Extract questions EXACTLY as written, do not paraphrase
- For multiple choice: Look for answer choices labeled with letters (A, B, C, D), numbers (1, 2, 3, 4), or other markers
- Extract ALL options verbatim, including the label (e.g., "A) Option text")
- If options are on separate lines below the question, extract each one
- Set confidence to 0.9+ if question and options are crystal clear
- Set confidence <0.9 if options are ambiguous or hard to read
- If answer key is visible anywhere, include in answer_hint
- Do not generate or infer content that isn't in the PDF
- Return ONLY valid JSON, no markdown formatting or code blocks
""".strip()


RETURN_QUESTIONS_DECLARATION = {
    "name": RETURN_QUESTIONS_FUNCTION,
    "description": "Return extracted questions from the exam PDF.",
    "parameters": {
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "q_no": {"type": "integer"},
                        "section": {"type": "string"},
                        "text": {"type": "string"},
                        "options": {
                            "type": "array",
                            "items": {"type": "string"},
                        },
                        "answer_type": {"type": "string", "enum": list(ANSWER_TYPES)},
                        "answer_hint": {"type": "string"},
                        "confidence": {"type": "number"},
                    },
                    "required": ["q_no", "text", "answer_type", "confidence"],
                },
            }
        },
        "required": ["questions"],
    },
}
