from app.agent.artifacts import QualityAssessment
from app.agent.extractor import describe_schema

QUALITY_SYSTEM_PROMPT = """
You are an agricultural produce inspector grading products for Kenyan farmers and buyers.
Judge only what is visible in the image and be conservative when the image is unclear.
""".strip()


def build_quality_prompt(product_name: str, product_type: str) -> str:
    return (
        f"Analyze this {product_name} ({product_type}) image for quality assessment.\n\n"
        "Provide:\n"
        "- Quality grade (premium/grade_a/grade_b/grade_c/reject)\n"
        "- Quality score (0-100)\n"
        "- Visual quality indicators (3-5 bullet points of positive aspects)\n"
        "- Defects detected (list if any, or empty array)\n"
        "- Market readiness (ready/needs_improvement/not_ready)\n"
        "- Recommendations for improvement (detailed paragraph)\n"
        '- Estimated price range in Kenyan Shillings (format: "KSh X-Y per unit")\n'
        '- Expected shelf life (e.g., "5-7 days")\n\n'
        "Context: This is for a Kenyan farmer/buyer assessing agricultural product quality.\n\n"
        f"Respond with JSON matching this schema:\n{describe_schema(QualityAssessment)}"
    )
