"""
Withdrawal tax and withdrawal requests.

Single fixed rule: 10% tax on the whole amount when it is above
10,000,000, nothing at or below. Minimum withdrawal 5,000,000.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import (
    ApprovalStatus,
    AuditAction,
    ContributionEvent,
    ContributionType,
    Entity,
    HolderType,
)
from sharepool.services.contribution import validate_amount
from sharepool.services.errors import BelowMinimumWithdrawal, InsufficientBalance, NotFound
from sharepool.services.rules import BusinessRules, resolve_rules
from sharepool.services.units import to_token_units
from sharepool.utils.audit import log_action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WithdrawalQuote:
    amount: Decimal
    tax: Decimal
    net_amount: Decimal


def calculate_withdrawal(amount: Decimal, rules: Optional[BusinessRules] = None) -> WithdrawalQuote:
    """
    Tax and net amount for a withdrawal.

    Raises:
        InvalidAmount: amount is malformed or not positive
        BelowMinimumWithdrawal: amount under the minimum withdrawal
    """
    rules = resolve_rules(rules)
    amount = validate_amount(amount)
    if amount < rules.min_withdrawal:
        raise BelowMinimumWithdrawal(
            f"Minimum withdrawal is {rules.min_withdrawal}, requested {amount}"
        )

    tax = amount * rules.withdrawal_tax_rate if amount > rules.withdrawal_tax_threshold else Decimal("0")
    return WithdrawalQuote(amount=amount, tax=tax, net_amount=amount - tax)


async def request_withdrawal(
    db: AsyncSession,
    entity_code: str,
    amount: Decimal,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> ContributionEvent:
    """
    Debit a member's withdrawable balance and queue a pending withdrawal.

    The member row is locked for the duration of the transaction.
    """
    rules = resolve_rules(rules)
    quote = calculate_withdrawal(amount, rules)

    result = await db.execute(
        select(Entity).where(Entity.code == entity_code).with_for_update()
    )
    entity = result.scalar_one_or_none()
    if entity is None:
        raise NotFound(f"Entity '{entity_code}' not found")

    if Decimal(entity.withdrawable_balance) < quote.amount:
        raise InsufficientBalance(
            f"Withdrawable balance {entity.withdrawable_balance} is below {quote.amount}"
        )

    entity.withdrawable_balance = Decimal(entity.withdrawable_balance) - quote.amount

    event = ContributionEvent(
        holder_type=HolderType.ENTITY,
        holder_id=entity.id,
        event_type=ContributionType.WITHDRAWAL,
        kind=None,
        amount=quote.amount,
        token_amount=to_token_units(quote.amount, rules),
        shares_granted=Decimal("0"),
        distributed_value=Decimal("0"),
        tax_amount=quote.tax,
        maxout_reached=False,
        status=ApprovalStatus.PENDING,
        description=f"Withdrawal, net {quote.net_amount}",
    )
    db.add(event)
    await db.flush()

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.WITHDRAWAL_REQUESTED,
        target_type="entity",
        target_id=entity.id,
        action_metadata={
            "amount": str(quote.amount),
            "tax": str(quote.tax),
            "net_amount": str(quote.net_amount),
        },
    )

    logger.info(f"Withdrawal requested by {entity_code}: {quote.amount} (tax {quote.tax})")
    return event
