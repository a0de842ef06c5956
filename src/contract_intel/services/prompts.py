"""
Prompt builders for the analysis stages.

Each prompt embeds the exact JSON schema the stage validates against, so
field names and enum values here must stay in sync with models/analysis.py.
Builders are pure functions of their inputs.
"""

import json
from typing import Any

JSON_RULES = """CRITICAL JSON RULES:
- Return ONLY the JSON object (no markdown, no text before or after)
- Use DOUBLE QUOTES for all keys and strings (not single quotes)
- Escape any quotes inside strings (use \\" not ")
- No trailing commas
- Use null for missing information"""


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def build_intelligence_prompt(contract_text: str, title: str) -> str:
    """Entity and clause extraction. The full text is sent; entities can appear anywhere."""
    return f"""You are an expert contract analyst. Extract key information from this contract and return it as valid JSON.

Contract Title: {title}

Contract Text:
{contract_text}

Extract the following information and return ONLY a JSON object of this shape:

{{
  "parties": [
    {{"name": "string", "role": "provider|client|other"}}
  ],
  "keyDates": [
    {{"dateType": "effective|expiration|renewal|other", "date": "YYYY-MM-DD", "description": "string"}}
  ],
  "financialTerms": [
    {{"type": "payment|penalty|bonus|fee", "amount": 0, "currency": "USD|EUR|etc", "description": "string"}}
  ],
  "clauses": [
    {{"clauseType": "termination|confidentiality|liability|indemnification|other", "content": "brief summary", "importance": "high|medium|low"}}
  ],
  "confidence": 0.0
}}

{JSON_RULES}
- Extract only information explicitly stated in the contract
- Dates must be formatted YYYY-MM-DD
- Amounts must be plain non-negative numbers, not strings (50000, not "$50,000")
- confidence is between 0.0 and 1.0 and reflects data quality and clarity"""


def build_risk_prompt(contract_text: str, intelligence: dict[str, Any]) -> str:
    """Risk assessment over already-truncated text."""
    return f"""You are a legal risk analyst. Analyze this contract for potential risks.

Contract Summary:
- Parties: {json.dumps(intelligence.get("parties", []), ensure_ascii=False)}
- Key Dates: {json.dumps(intelligence.get("keyDates", []), ensure_ascii=False)}
- Financial Terms: {json.dumps(intelligence.get("financialTerms", []), ensure_ascii=False)}

Full Contract Text:
{contract_text}

Return ONLY a JSON object of this shape:

{{
  "riskLevel": "low|medium|high|critical",
  "risks": [
    {{
      "category": "financial|legal|operational|compliance|reputational",
      "severity": "low|medium|high|critical",
      "description": "clear explanation",
      "recommendation": "specific action"
    }}
  ],
  "overallAssessment": "brief summary",
  "confidence": 0.0
}}

{JSON_RULES}
- All descriptions should be complete sentences
- confidence is between 0.0 and 1.0"""


def build_compliance_prompt(contract_text: str, intelligence: dict[str, Any]) -> str:
    """Compliance check over already-truncated text."""
    return f"""You are a compliance officer. Check this contract against standard business practices.

Contract Details:
{_dump(intelligence)}

Contract Text:
{contract_text}

Return ONLY a JSON object of this shape:

{{
  "complianceScore": 0,
  "issues": [
    {{
      "standard": "data protection|payment terms|termination|liability|other",
      "issue": "what is missing or problematic",
      "severity": "low|medium|high"
    }}
  ],
  "recommendations": ["specific improvements"],
  "confidence": 0.0
}}

Evaluate:
- Data protection clauses
- Clear payment terms
- Fair termination conditions
- Liability limitations
- Dispute resolution mechanisms

{JSON_RULES}
- complianceScore is an integer from 0 to 100
- confidence is between 0.0 and 1.0"""


def build_pricing_prompt(contract_text: str, financial_terms: list[dict[str, Any]]) -> str:
    """Pricing evaluation over already-truncated text."""
    return f"""You are a business analyst. Evaluate the financial terms of this contract.

Financial Terms:
{_dump(financial_terms)}

Contract Context:
{contract_text}

Return ONLY a JSON object of this shape:

{{
  "marketPosition": "favorable|average|unfavorable",
  "analysis": "detailed analysis of pricing",
  "recommendations": ["specific suggestions"],
  "comparableTerms": ["industry standard comparisons"],
  "confidence": 0.0
}}

Consider:
- Payment structure competitiveness
- Hidden costs or fees
- Payment terms favorability
- Value for money
- Industry benchmarks

{JSON_RULES}
- confidence is between 0.0 and 1.0"""
