"""
Notification sender (mock).

Confirmation and activation emails are written to the log instead of
being sent.
"""

import logging

logger = logging.getLogger("autoquote")


class NotificationSender:
    """Fire-and-forget customer notifications."""

    def notify_bound(self, quote, payment_result):
        snapshot = quote["snapshot"]
        logger.info(
            f"Mock email sent | "
            f"template=policy_bound | "
            f"to={snapshot['driver']['email']} | "
            f"policy_number={quote['quote_number']} | "
            f"amount={payment_result.amount} | "
            f"last4={payment_result.last_four_digits}"
        )

    def notify_activated(self, policy):
        logger.info(
            f"Mock email sent | "
            f"template=policy_activated | "
            f"to={policy.driver_email} | "
            f"policy_number={policy.policy_number} | "
            f"effective_date={policy.effective_date}"
        )
