"""
Service wiring for the HTTP layer.

Components are built once at startup from an explicit Settings value and
kept on ``app.state``; route handlers receive them through FastAPI
dependencies.
"""

from dataclasses import dataclass

from fastapi import Request

from contract_intel.config import Settings
from contract_intel.pipeline.orchestrator import AnalysisOrchestrator, Notifier
from contract_intel.services.analysis_service import AnalysisService
from contract_intel.services.contract_service import ContractService
from contract_intel.services.llm_service import CompletionCapability, LLMService
from contract_intel.services.notification_service import EmailNotifier
from contract_intel.storage import ContractStore, create_store


@dataclass
class Services:
    settings: Settings
    store: ContractStore
    llm: CompletionCapability
    notifier: Notifier
    contracts: ContractService
    orchestrator: AnalysisOrchestrator


def build_services(
    settings: Settings,
    store: ContractStore | None = None,
    llm: CompletionCapability | None = None,
    notifier: Notifier | None = None,
) -> Services:
    """Assemble the application's components; any of them may be injected."""
    store = store if store is not None else create_store(settings)
    llm = llm if llm is not None else LLMService(settings)
    notifier = notifier if notifier is not None else EmailNotifier(settings)

    return Services(
        settings=settings,
        store=store,
        llm=llm,
        notifier=notifier,
        contracts=ContractService(settings, store),
        orchestrator=AnalysisOrchestrator(
            settings, store, AnalysisService(settings, llm), notifier
        ),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_contract_service(request: Request) -> ContractService:
    return get_services(request).contracts


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    return get_services(request).orchestrator
