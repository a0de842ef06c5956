"""Shared pytest fixtures and fakes for the contract-intel test suite."""

import json
from datetime import timedelta

import pytest

from contract_intel.config import Settings, get_settings
from contract_intel.exceptions import CapabilityError
from contract_intel.models.contract import ContractRecord, FileType, KeyDate, utcnow
from contract_intel.storage.memory import InMemoryContractStore


# ---------------------------------------------------------------------------
# Singleton cache clearing (autouse)
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the @lru_cache settings singleton between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Scripted LLM capability
# ---------------------------------------------------------------------------

# Phrases that open each stage prompt
STAGE_MARKERS = {
    "intelligence": "expert contract analyst",
    "risk": "legal risk analyst",
    "compliance": "compliance officer",
    "pricing": "business analyst",
}


class FakeLLM:
    """
    Completion capability that answers per stage from a script.

    A scripted value may be a dict (sent as JSON), a raw string, or an
    exception instance to raise. Every call is recorded.
    """

    def __init__(self, responses: dict | None = None, available: bool = True):
        self.responses = dict(responses or {})
        self._available = available
        self.calls: list[tuple[str, str, int | None]] = []

    @property
    def available(self) -> bool:
        return self._available

    @staticmethod
    def stage_of(prompt: str) -> str:
        for stage, marker in STAGE_MARKERS.items():
            if marker in prompt:
                return stage
        raise AssertionError(f"Unrecognised prompt: {prompt[:80]!r}")

    async def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        stage = self.stage_of(prompt)
        self.calls.append((stage, prompt, max_tokens))

        response = self.responses.get(stage)
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise CapabilityError(f"No scripted response for {stage}")
        return response if isinstance(response, str) else json.dumps(response)

    @property
    def stages_called(self) -> list[str]:
        return [stage for stage, _, _ in self.calls]

    def prompt_for(self, stage: str) -> str:
        return next(prompt for s, prompt, _ in self.calls if s == stage)


# ---------------------------------------------------------------------------
# Settings & storage
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment: no keys, no email, no waits."""
    return Settings(
        _env_file=None,
        anthropic_api_key="",
        openai_api_key="",
        llm_retry_min_wait=0,
        llm_retry_max_wait=0,
        redis_enabled=False,
        email_user="",
        email_password="",
        upload_dir=tmp_path / "uploads",
    )


@pytest.fixture
def store():
    return InMemoryContractStore()


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_contract_text():
    """A short services agreement with a section per feature area."""
    return (
        "MASTER SERVICES AGREEMENT\n\n"
        "This Master Services Agreement is entered into as of January 1, 2025 between "
        'Acme Software Inc. ("Provider") and Beta Retail LLC ("Client").\n\n'
        "1. Services. Provider shall deliver software development services described "
        "in each statement of work.\n"
        "2. Payment. Client shall pay Provider a fixed fee of $50,000 within thirty days "
        "of invoice. Late payment accrues interest at 1.5% per month.\n"
        "3. Term and Termination. This agreement expires on December 31, 2025. Either "
        "party may terminate for convenience with sixty days written notice.\n"
        "4. Confidentiality. Each party shall protect the confidential information of "
        "the other party.\n"
        "5. Liability. Provider's total liability shall not exceed the fees paid under "
        "this agreement.\n"
        "6. Indemnification. Client shall indemnify Provider against third-party claims.\n"
    )


@pytest.fixture
def intelligence_response():
    soon = (utcnow() + timedelta(days=10)).strftime("%Y-%m-%d")
    return {
        "parties": [
            {"name": "Acme Software Inc.", "role": "provider"},
            {"name": "Beta Retail LLC", "role": "client"},
        ],
        "keyDates": [
            {"dateType": "effective", "date": "2025-01-01", "description": "Start of services"},
            {"dateType": "renewal", "date": soon, "description": "Renewal notice due"},
        ],
        "financialTerms": [
            {"type": "fee", "amount": 50000, "currency": "USD", "description": "Fixed fee"},
        ],
        "clauses": [
            {"clauseType": "termination", "content": "Sixty days notice", "importance": "high"},
        ],
        "confidence": 0.9,
    }


@pytest.fixture
def risk_response():
    return {
        "riskLevel": "high",
        "risks": [
            {
                "category": "financial",
                "severity": "high",
                "description": "Late payment interest is above market rates.",
                "recommendation": "Negotiate a lower rate.",
            }
        ],
        "overallAssessment": "Moderately one-sided agreement.",
        "confidence": 0.6,
    }


@pytest.fixture
def compliance_response():
    return {
        "complianceScore": 72,
        "issues": [
            {
                "standard": "data protection",
                "issue": "No data processing terms.",
                "severity": "medium",
            }
        ],
        "recommendations": ["Add a data processing addendum"],
        "confidence": 0.0,
    }


@pytest.fixture
def pricing_response():
    return {
        "marketPosition": "favorable",
        "analysis": "Fixed fee is below typical rates.",
        "recommendations": ["Keep the fixed fee structure"],
        "comparableTerms": ["Industry average is $60,000"],
        "confidence": 0.8,
    }


@pytest.fixture
def all_responses(intelligence_response, risk_response, compliance_response, pricing_response):
    return {
        "intelligence": intelligence_response,
        "risk": risk_response,
        "compliance": compliance_response,
        "pricing": pricing_response,
    }


@pytest.fixture
def fake_llm(all_responses):
    return FakeLLM(all_responses)


@pytest.fixture
def make_record(tmp_path):
    """Factory for ContractRecord instances backed by a real file."""
    def _make(text: str = "", title: str = "Test Contract", **fields) -> ContractRecord:
        path = tmp_path / f"{title.replace(' ', '_')}.txt"
        path.write_text(text or "placeholder", encoding="utf-8")
        return ContractRecord(
            title=title,
            file_name=path.name,
            file_path=str(path),
            file_type=FileType.TEXT,
            raw_text=text,
            **fields,
        )

    return _make


@pytest.fixture
def key_date_in():
    """KeyDate a given offset from now."""
    def _make(delta: timedelta, date_type: str = "expiration") -> KeyDate:
        return KeyDate(date_type=date_type, date=utcnow() + delta, description="Deadline")

    return _make


@pytest.fixture
def make_llm():
    """Build a FakeLLM with a custom script."""
    return FakeLLM
