"""
Policy record store.

Status writes go through ``compare_and_set_status`` so that a status guard
and its write are a single UPDATE: of two concurrent binds only one can
see QUOTED.
"""

from typing import Dict, Any, Optional
from datetime import datetime

from autoquote.errors import NotFoundError
from autoquote.models import Policy
from autoquote.services.lifecycle import PolicyStatus


def normalize_policy_number(policy_number: str) -> str:
    return (policy_number or "").strip().upper()


class PolicyStore:
    """get / insert / update over the ``policy`` table."""

    def __init__(self, db_session):
        self.session = db_session

    def get(self, policy_number: str) -> Optional[Policy]:
        return self.session.query(Policy).filter(
            Policy.policy_number == normalize_policy_number(policy_number)
        ).first()

    def get_or_raise(self, policy_number: str, resource: str = "Quote") -> Policy:
        policy = self.get(policy_number)
        if not policy:
            raise NotFoundError(resource, policy_number)
        return policy

    def insert(self, policy: Policy) -> Policy:
        self.session.add(policy)
        self.session.commit()
        self.session.refresh(policy)
        return policy

    def update(
        self,
        policy_number: str,
        fields: Dict[str, Any],
        expected_status: Optional[PolicyStatus] = None,
        commit: bool = True
    ) -> bool:
        """
        Update fields on one record.

        With ``expected_status`` the update only applies while the record is
        still in that status. Returns True when a row was updated.
        """
        query = self.session.query(Policy).filter(
            Policy.policy_number == normalize_policy_number(policy_number)
        )
        if expected_status is not None:
            query = query.filter(Policy.status == PolicyStatus(expected_status).value)

        values = {**fields, "updated_at": datetime.utcnow()}
        updated = query.update(values, synchronize_session=False)

        if commit:
            self.session.commit()
        self.session.expire_all()

        return updated == 1

    def compare_and_set_status(
        self,
        policy_number: str,
        expected: PolicyStatus,
        new: PolicyStatus,
        commit: bool = True,
        **fields
    ) -> bool:
        return self.update(
            policy_number,
            {"status": PolicyStatus(new).value, **fields},
            expected_status=expected,
            commit=commit
        )
