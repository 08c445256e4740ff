"""
Offline console demo: scores sample dealership visits without any API keys.

Runs the real orchestrator, circuit breaker, fallback scorer, and
in-memory stores with a model client that is always offline, so every
score comes from the fallback path. Shows the breaker tripping, the
24h cache being reused, and the resulting performance report.

Usage:
    python console_demo.py
    python console_demo.py --scenario hot_lead
    python console_demo.py --scenario browser
"""

import argparse
import asyncio
from typing import Any

from visit_analysis.config import settings
from visit_analysis.errors import UpstreamError
from visit_analysis.evaluation.metrics import MetricsCalculator
from visit_analysis.orchestrator import AnalysisOrchestrator
from visit_analysis.schemas.analysis_schema import AnalysisOutcome
from visit_analysis.schemas.visit_schema import VisitAnalysisRequest
from visit_analysis.scoring.circuit_breaker import CircuitBreaker
from visit_analysis.storage.memory import InMemoryAuditLog, InMemoryVisitStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class OfflineModelScorer:
    """Stands in for the OpenAI scorer; every call fails."""

    async def score(self, request: VisitAnalysisRequest):
        raise UpstreamError("Model offline (console demo)")


class ConsoleSession:
    """Scores pre-scripted visits in the terminal."""

    SCENARIOS: dict[str, dict[str, Any]] = {
        "hot_lead": {
            "visit_id": "demo-hot-lead",
            "customer_data": {
                "name": "Omar Haddad",
                "phone": "0791234567",
                "language_preference": "ar",
                "visit_history": 2,
            },
            "visit_data": {
                "vehicle_interest": {
                    "type": "SUV",
                    "brand": "Toyota",
                    "model": "RAV4",
                    "budget_range": "25000-35000",
                    "purchase_timeline": "within_week",
                    "financing_preference": "bank_loan",
                },
                "consultant_notes": "Very interested, asked about price and Eid offers",
                "source": "referral",
                "visit_duration": 45,
                "interaction_quality": "excellent",
            },
        },
        "planned_purchase": {
            "visit_id": "demo-planned",
            "customer_data": {
                "name": "Lina Khoury",
                "phone": "0789876543",
                "language_preference": "en",
                "visit_history": 2,
            },
            "visit_data": {
                "vehicle_interest": {
                    "type": "Sedan",
                    "brand": "Hyundai",
                    "model": "Elantra",
                    "budget_range": "25000-35000",
                    "purchase_timeline": "within_month",
                },
                "source": "website",
                "visit_duration": 30,
            },
        },
        "browser": {
            "visit_id": "demo-browser",
            "visit_data": {"vehicle_interest": {}},
        },
    }

    def __init__(self) -> None:
        self.visits = InMemoryVisitStore()
        self.audit_log = InMemoryAuditLog()
        self.breaker = CircuitBreaker(
            max_failures=settings.breaker.max_failures,
            reset_timeout=settings.breaker.reset_seconds,
        )
        self.orchestrator = AnalysisOrchestrator(
            visit_store=self.visits,
            audit_log=self.audit_log,
            model_scorer=OfflineModelScorer(),
            breaker=self.breaker,
        )

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def show_outcome(self, outcome: AnalysisOutcome) -> None:
        r = outcome.result
        source = "cache" if outcome.cached else outcome.method.value
        color = GREEN if r.priority_ranking >= 7 else YELLOW
        print(f"{color}{BOLD}  priority {r.priority_ranking}/10{RESET}"
              f"{color}  purchase {r.purchase_probability:.0%}"
              f"  sentiment {r.sentiment_score:+.2f}"
              f"  confidence {r.confidence_score:.0%}{RESET}")
        print(f"{DIM}  source: {source}  next contact: {r.next_contact_timing}{RESET}")
        for action in r.recommended_actions:
            print(f"    - {action}")

    async def score(self, name: str, force: bool = False) -> None:
        payload = dict(self.SCENARIOS[name], force_reanalysis=force)
        print(f"\n{BLUE}[Visit] {RESET}{name} ({payload['visit_id']})")
        outcome = await self.orchestrator.analyze(VisitAnalysisRequest.model_validate(payload))
        self.show_outcome(outcome)
        self.system_log(
            f"Breaker: {self.breaker.state.value} "
            f"({self.breaker.failure_count}/{self.breaker.max_failures} failures)"
        )

    def run_scenario(self, scenario: str) -> None:
        """Score a single named scenario."""
        if scenario not in self.SCENARIOS:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        asyncio.run(self.score(scenario))

    def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  VISIT ANALYSIS - Console Demo (model offline){RESET}")
        print(f"{BOLD}  Service: {settings.service_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        asyncio.run(self._run_all())

    async def _run_all(self) -> None:
        for name in self.SCENARIOS:
            await self.score(name)

        print(f"\n{BOLD}  Re-scoring within the freshness window:{RESET}")
        await self.score("hot_lead")

        print(f"\n{BOLD}  Forcing re-analysis:{RESET}")
        await self.score("hot_lead", force=True)

        calculator = MetricsCalculator()
        print()
        print(calculator.format_report(calculator.calculate(self.audit_log.entries)))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Offline visit analysis demo.")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Score a single sample visit instead of the full walkthrough.",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()
