import google.generativeai as genai
import logging
from typing import Optional
from pydantic import BaseModel, ConfigDict, ValidationError
from newsfacts.errors import AnalysisSchemaError, ConfigurationError
from newsfacts.models import Analysis, AnalysisOutcome, AnalysisStatus

logger = logging.getLogger(__name__)

HEADLINE_MAX_CHARS = 100
SUMMARY_MAX_CHARS = 500


class ArticleAnalysis(BaseModel):
    """Structured output contract for the model: exactly three strings."""
    model_config = ConfigDict(extra="forbid", strict=True)

    headline: str
    source: str
    summary: str


# Same contract expressed as a Gemini response schema
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "headline": {"type": "STRING"},
        "source": {"type": "STRING"},
        "summary": {"type": "STRING"},
    },
    "required": ["headline", "source", "summary"],
}


def create_prompt(title: str, content: str) -> str:
    return f"""Analyze the following news article.

First decide whether the article reports a factual event that has already happened,
or whether it is theory, opinion, commentary or speculation that something may happen.

If it reports a completed factual event:
- Write a headline of {HEADLINE_MAX_CHARS} characters or less stating the fact.
- Write a summary of {SUMMARY_MAX_CHARS} characters or less stating the fact.
- Use a neutral, objective tone. Remove expressive, emotive or sensational language
  (hyperbolic adjectives, dramatic verbs) while keeping the core facts and key details.
- Identify the best source to attribute the factual information to. Prefer the primary
  source, but it must be bibliographically correct. A secondary or inferred source is
  acceptable when it is the most accurate: a new executive order can be attributed to
  the White House, a hurricane report to the National Weather Service.
- The source will be searched and grouped across articles, so use its normalized,
  canonical, human-readable name and avoid small variations in spelling or form.

**Rules:**
- Events that may happen in the future are not factual updates.
- Commentary, opinions and speculative statements are not factual updates.
- Use plain objective language only, the way a machine would report it.
- If the article has no factual update, return empty strings for both summary and source
  (the headline may also be empty).

**Output:**
A JSON object with exactly these string fields:
- headline: {HEADLINE_MAX_CHARS} characters or less summarizing the factual update
- summary: {SUMMARY_MAX_CHARS} characters or less summarizing the factual update
- source: the normalized source of the factual information

Article: {title}
{content}
"""


def parse_analysis(response_text: Optional[str]) -> Analysis:
    """
    Coerce raw model output to an Analysis.
    Raises AnalysisSchemaError when the output does not match the contract.
    """
    if not response_text or not response_text.strip():
        raise AnalysisSchemaError("Model returned an empty response")

    text = response_text.strip().replace('```json', '').replace('```', '').strip()
    try:
        parsed = ArticleAnalysis.model_validate_json(text)
    except ValidationError as e:
        raise AnalysisSchemaError(f"Response does not match analysis schema: {e.errors()[:3]}") from e

    return Analysis(
        headline=parsed.headline.strip(),
        source=parsed.source.strip(),
        summary=parsed.summary.strip(),
    )


def classify_analysis(analysis: Analysis) -> AnalysisOutcome:
    """Empty summary or source is the model's "no factual update" answer."""
    if not analysis.summary or not analysis.source:
        return AnalysisOutcome(AnalysisStatus.NOT_FACTUAL, analysis=analysis)
    return AnalysisOutcome(AnalysisStatus.ANALYZED, analysis=analysis)


class GeminiAnalyzer:
    def __init__(self, api_key: Optional[str], model_name: str = "gemini-2.0-flash", model=None):
        """
        Args:
            api_key: Gemini API key; missing key is a configuration error
            model_name: Gemini model used for every article
            model: Optional object with generate_content_async (for tests)
        """
        self.model_name = model_name
        if model is not None:
            self.model = model
            return

        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is required for article analysis")
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
        )
        logger.info(f"Using model: {model_name}")

    async def analyze_content(self, title: str = "", content: str = "") -> Analysis:
        """
        Analyze one article. Raises AnalysisSchemaError for any failure,
        including errors from the model call itself.
        """
        prompt = create_prompt(title or "", content or "")
        try:
            response = await self.model.generate_content_async(prompt)
            response_text = response.text
        except Exception as e:
            raise AnalysisSchemaError(f"Model {self.model_name} call failed: {str(e)[:200]}") from e

        return parse_analysis(response_text)

    async def analyze(self, title: str = "", content: str = "") -> AnalysisOutcome:
        try:
            analysis = await self.analyze_content(title, content)
        except AnalysisSchemaError as e:
            logger.warning(f"Analysis failed for '{(title or '')[:50]}': {e}")
            return AnalysisOutcome(AnalysisStatus.FAILED, error=str(e))
        return classify_analysis(analysis)
