"""
Shared Expense Splitting

Divides a group expense between its creator and the selected members.

Split types:
- equal: everyone owes the same amount
- percentage: each member owes a percentage, the creator owes the rest
- custom: each member owes a fixed amount, the creator owes the rest

Member amounts are rounded down to the paisa and the creator absorbs the
remainder, so the shares always add up to the total exactly.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

from vittas.audit import AuditLogger
from vittas.errors import ValidationError
from vittas.models.sharing import (
    ExpenseShare,
    SharedExpense,
    SharedExpenseDraft,
    SplitType,
)
from vittas.services.storage.interface import SharedExpenseStorageInterface


CENT = Decimal("0.01")
HUNDRED = Decimal("100")

SplitValue = Union[Decimal, str, int, float]


def _to_decimal(value: Optional[SplitValue]) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid split value: {value}")


def _round_down(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_DOWN)


def split_expense(
    total: Decimal,
    creator_id: UUID,
    members: list[UUID],
    split_type: Union[SplitType, str] = SplitType.EQUAL,
    member_splits: Optional[dict[UUID, SplitValue]] = None,
) -> list[ExpenseShare]:
    """
    Compute what each participant owes.

    Args:
        total: Expense total, greater than zero
        creator_id: User who paid; their share is marked paid
        members: Users the expense is split with (creator excluded)
        split_type: equal, percentage or custom
        member_splits: Percentage or amount per member for the
            percentage and custom split types. Missing members count as 0.

    Returns:
        The creator's share first, then one share per member in order.

    Raises:
        ValidationError: On a non-positive total, no members, or splits
            that exceed the total
    """
    total = _to_decimal(total)
    if total <= 0:
        raise ValidationError("Total amount must be greater than 0")

    try:
        split_type = SplitType(split_type)
    except ValueError:
        raise ValidationError(f"Invalid split type: {split_type}")

    # Preserve selection order, drop duplicates and the creator
    unique_members: list[UUID] = []
    for member in members:
        if member != creator_id and member not in unique_members:
            unique_members.append(member)
    if not unique_members:
        raise ValidationError("Select at least one member to split with")

    member_splits = member_splits or {}

    if split_type == SplitType.EQUAL:
        per_person = _round_down(total / (len(unique_members) + 1))
        member_amounts = [per_person] * len(unique_members)

    elif split_type == SplitType.PERCENTAGE:
        percentages = [_to_decimal(member_splits.get(m)) for m in unique_members]
        for pct in percentages:
            if pct < 0 or pct > HUNDRED:
                raise ValidationError("Percentages must be between 0 and 100")
        if sum(percentages, Decimal("0")) > HUNDRED:
            raise ValidationError("Percentages cannot add up to more than 100")
        member_amounts = [_round_down(total * pct / HUNDRED) for pct in percentages]

    else:
        member_amounts = [_to_decimal(member_splits.get(m)) for m in unique_members]
        if any(amount < 0 for amount in member_amounts):
            raise ValidationError("Custom amounts cannot be negative")
        member_amounts = [amount.quantize(CENT) for amount in member_amounts]
        if sum(member_amounts, Decimal("0")) > total:
            raise ValidationError("Custom amounts cannot add up to more than the total")

    creator_amount = total - sum(member_amounts, Decimal("0"))

    shares = [ExpenseShare(user_id=creator_id, amount_owed=creator_amount, paid=True)]
    shares.extend(
        ExpenseShare(user_id=member, amount_owed=amount)
        for member, amount in zip(unique_members, member_amounts)
    )
    return shares


class SharedExpenseService:
    """Creates and lists shared group expenses."""

    def __init__(
        self,
        storage: SharedExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

    async def create_expense(
        self,
        draft: SharedExpenseDraft,
        members: list[UUID],
        split_type: Union[SplitType, str] = SplitType.EQUAL,
        member_splits: Optional[dict[UUID, SplitValue]] = None,
    ) -> SharedExpense:
        """
        Split and store a new expense.

        Either the expense and all of its shares are stored, or neither is.
        """
        shares = split_expense(
            draft.total_amount,
            draft.created_by,
            members,
            split_type,
            member_splits,
        )
        expense = await self._storage.create_shared_expense(draft, shares)

        await self._audit.log_shared_expense_saved(
            expense_id=expense.id,
            group_id=expense.group_id,
            created_by=expense.created_by,
            participant_count=len(shares),
        )
        return expense

    async def list_expenses(self, group_id: UUID) -> list[SharedExpense]:
        return await self._storage.list_shared_expenses(group_id)

    async def delete_expense(self, expense_id: UUID) -> bool:
        return await self._storage.delete_shared_expense(expense_id)
