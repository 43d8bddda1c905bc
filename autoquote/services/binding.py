"""
Binding service: QUOTED -> BINDING -> BOUND, and BOUND -> IN_FORCE.

Status writes are guarded and must succeed. Documents and notifications
after BOUND are best-effort: failures are logged and never undo the bind.
"""

from typing import Dict, Any, List, Optional, Callable
from datetime import datetime
import logging
import random
import string

from autoquote.errors import ValidationError, ConflictError, PaymentDeclinedError, InternalError
from autoquote.models import Payment, Policy
from autoquote.services.documents import generate_policy_documents
from autoquote.services.events import append_event
from autoquote.services.lifecycle import PolicyStatus, Transition, next_status
from autoquote.services.notifications import NotificationSender
from autoquote.services.payments import (
    CREDIT_CARD,
    ACH,
    PaymentResult,
    normalize_payment_method,
    simulate_payment,
)
from autoquote.services.quotes import quote_to_dict
from autoquote.services.rating import require_vehicle
from autoquote.services.snapshot import load_snapshot
from autoquote.services.store import PolicyStore

logger = logging.getLogger("autoquote")

REQUIRED_PAYMENT_FIELDS = {
    CREDIT_CARD: ("card_number",),
    ACH: ("routing_number", "account_number"),
}


def run_best_effort(task_name: str, task: Callable, *args, on_error: Optional[Callable] = None, **kwargs):
    """Run a side effect whose failure must not fail the caller. Returns None on failure."""
    try:
        return task(*args, **kwargs)
    except Exception:
        logger.exception(f"Best-effort task failed | task={task_name}")
        if on_error is not None:
            on_error()
        return None


def validate_payment_details(payment_method: str, details: Dict[str, Any]) -> None:
    """Reject missing payment fields before any status is written."""
    method = normalize_payment_method(payment_method)
    for field in REQUIRED_PAYMENT_FIELDS.get(method, ()):
        if not (details.get(field) or "").strip():
            raise ValidationError(f"{field} is required for {method} payments", field=field)


def generate_payment_number() -> str:
    return "PAY-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=8))


class BindingService:
    """
    Orchestrates binding and activation for one database session.

    Collaborators (payment simulator, document generator, notifier, event
    log) are injectable so tests can replace them.
    """

    def __init__(
        self,
        db_session,
        payment_simulator: Callable[..., PaymentResult] = simulate_payment,
        document_generator: Callable[..., List] = generate_policy_documents,
        notifier: Optional[NotificationSender] = None,
        event_log: Callable[..., Dict[str, Any]] = append_event
    ):
        self.session = db_session
        self.store = PolicyStore(db_session)
        self.payment_simulator = payment_simulator
        self.document_generator = document_generator
        self.notifier = notifier or NotificationSender()
        self.event_log = event_log

    def bind_quote(self, quote_number: str, payment_method: str, payment_details: Dict[str, Any]) -> Dict[str, Any]:
        """
        Bind a quote with payment.

        Args:
            quote_number: Quote number (DZXXXXXXXX)
            payment_method: credit_card or ach
            payment_details: Card or bank account fields

        Returns:
            Bind result with payment summary and generated documents

        Raises:
            NotFoundError: quote does not exist
            ValidationError: required payment fields or vehicle missing (nothing written)
            ConflictError: quote is not QUOTED (nothing written)
            PaymentDeclinedError: payment failed; status reverted to QUOTED
        """
        policy = self.store.get_or_raise(quote_number)
        validate_payment_details(payment_method, payment_details)

        quoted = PolicyStatus(policy.status)
        snapshot = load_snapshot(policy.quote_snapshot)
        if quoted == PolicyStatus.QUOTED:
            require_vehicle(snapshot.vehicles)

        binding = next_status(quoted, Transition.BEGIN_BIND)

        # Persisted before the payment attempt so a crash leaves BINDING, not QUOTED
        if not self.store.compare_and_set_status(policy.policy_number, quoted, binding):
            latest = self.store.get_or_raise(quote_number)
            raise ConflictError(latest.status, Transition.BEGIN_BIND.value)

        logger.info(f"Binding started | quote_number={policy.policy_number} | status={binding.value}")

        result = self.payment_simulator(payment_method, payment_details, snapshot.premium.total)

        if not result.success:
            reverted = next_status(binding, Transition.PAYMENT_FAILED)
            self.store.compare_and_set_status(policy.policy_number, binding, reverted)
            logger.warning(
                f"Binding failed, status reverted | "
                f"quote_number={policy.policy_number} | "
                f"status={reverted.value} | "
                f"reason={result.reason}"
            )
            raise PaymentDeclinedError(result.reason)

        bound = next_status(binding, Transition.PAYMENT_SUCCEEDED)
        payment = self._record_payment(policy, result)
        if not self.store.compare_and_set_status(policy.policy_number, binding, bound, commit=False):
            self.session.rollback()
            logger.error(f"Policy left BINDING during payment | quote_number={policy.policy_number}")
            raise InternalError("Binding could not be completed")
        self.session.commit()
        self.session.refresh(payment)

        self.event_log(policy.id, quoted.value, bound.value, "Payment received", self.session)

        logger.info(
            f"Policy bound | "
            f"policy_number={policy.policy_number} | "
            f"payment_number={payment.payment_number} | "
            f"amount={payment.amount}"
        )

        documents = run_best_effort(
            "generate_documents",
            self.document_generator,
            policy.id,
            policy.policy_number,
            self.session,
            on_error=self.session.rollback
        ) or []

        policy = self.store.get_or_raise(quote_number)
        run_best_effort("notify_bound", self.notifier.notify_bound, quote_to_dict(policy), result)

        return {
            "policy_id": policy.id,
            "policy_number": policy.policy_number,
            "status": policy.status,
            "premium_amount": policy.premium_amount,
            "effective_date": policy.effective_date,
            "expiration_date": policy.expiration_date,
            "payment": payment,
            "documents": documents,
        }

    def _record_payment(self, policy: Policy, result: PaymentResult) -> Payment:
        """Stage the payment row; committed together with the BOUND write."""
        payment = Payment(
            policy_id=policy.id,
            payment_number=generate_payment_number(),
            payment_method=result.payment_method,
            payment_status="COMPLETED",
            amount=result.amount,
            last_four_digits=result.last_four_digits,
            card_brand=result.card_brand,
            account_type=result.account_type,
            transaction_id=result.transaction_id,
            gateway_response="Approved",
            payment_date=datetime.utcnow()
        )
        self.session.add(payment)
        return payment

    def activate_policy(self, policy_number: str) -> Dict[str, Any]:
        """
        Move a bound policy in force (effective date reached).

        Raises:
            NotFoundError: policy does not exist
            ConflictError: policy is not BOUND
        """
        policy = self.store.get_or_raise(policy_number, resource="Policy")
        current = PolicyStatus(policy.status)
        in_force = next_status(current, Transition.ACTIVATE)

        if not self.store.compare_and_set_status(policy.policy_number, current, in_force):
            latest = self.store.get_or_raise(policy_number, resource="Policy")
            raise ConflictError(latest.status, Transition.ACTIVATE.value)

        self.event_log(policy.id, current.value, in_force.value, "Policy activated on effective date", self.session)
        logger.info(f"Policy activated | policy_number={policy.policy_number}")

        policy = self.store.get_or_raise(policy_number, resource="Policy")
        run_best_effort("notify_activated", self.notifier.notify_activated, policy)

        return {
            "policy_id": policy.id,
            "policy_number": policy.policy_number,
            "status": policy.status,
            "effective_date": policy.effective_date,
            "expiration_date": policy.expiration_date,
        }
