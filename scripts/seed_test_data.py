"""
Seed demo data for Sharepool testing.

Usage:
    python scripts/seed_test_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_test_data.py

This script creates:
- An accountant user (if not exists)
- The default tier table
- Members in each tier, a referral, a branch and two staff members
- KPI records and ledger entries for one quarter
"""

import asyncio
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.db import get_db_context
from sharepool.models import ContributionKind, HolderType, LedgerEntryType, User, UserRole
from sharepool.services.approval import approve_contribution
from sharepool.services.contribution import record_contribution
from sharepool.services.holders import create_staff_member, get_holder_by_code, open_branch
from sharepool.services.errors import InvalidTransition, NotFound
from sharepool.services.kpi import KpiMetrics, calculate_kpi
from sharepool.services.ledger import record_ledger_entry
from sharepool.services.referral import create_referral
from sharepool.services.tiers import seed_default_tiers
from sharepool.utils.password import hash_password

DEMO_QUARTER = "2024-Q1"
DEMO_DAY = datetime(2024, 2, 15, 12, 0, tzinfo=timezone.utc)

# ===== TEST DATA =====

TEST_MEMBERS = [
    {"code": "M-FOUNDER", "name": "Founding Partner", "amount": Decimal("250000000"), "kind": ContributionKind.CASH},
    {"code": "M-ANGEL", "name": "Angel Investor", "amount": Decimal("120000000"), "kind": ContributionKind.CASH},
    {"code": "M-CARD", "name": "Card Customer", "amount": Decimal("2000000"), "kind": ContributionKind.CARD},
]

TEST_STAFF = [
    {"code": "S-LEAD", "name": "Sales Lead", "position": "lead", "card_sales": 12, "retention": Decimal("85")},
    {"code": "S-CASH", "name": "Cashier", "position": "cashier", "card_sales": 2, "retention": Decimal("40")},
]


async def create_test_accountant(db: AsyncSession) -> User:
    """Create a test accountant user."""
    result = await db.execute(
        select(User).where(User.username == "test_accountant")
    )
    accountant = result.scalar_one_or_none()

    if not accountant:
        accountant = User(
            username="test_accountant",
            password_hash=hash_password("test123"),
            role=UserRole.ACCOUNTANT,
            display_name="Test Accountant",
            is_active=True,
        )
        db.add(accountant)
        await db.flush()
        print("Created test accountant: test_accountant / test123")
    else:
        print(f"Test accountant already exists (id={accountant.id})")

    return accountant


async def create_test_members(db: AsyncSession, user_id: int) -> None:
    """Record and approve one contribution per demo member."""
    for member in TEST_MEMBERS:
        try:
            await get_holder_by_code(db, HolderType.ENTITY, member["code"])
            print(f"Member {member['code']} already exists")
            continue
        except NotFound:
            pass

        event, result = await record_contribution(
            db, member["code"], member["amount"], member["kind"], name=member["name"], user_id=user_id,
        )
        await approve_contribution(db, event.id, user_id=user_id)
        print(f"Created member {member['code']}: tier {result.tier}, {result.shares} shares")

    try:
        await get_holder_by_code(db, HolderType.ENTITY, "M-REFERRED")
        print("Referred member already exists")
        return
    except NotFound:
        pass

    referral = await create_referral(db, "M-ANGEL")
    event, _ = await record_contribution(
        db, "M-REFERRED", Decimal("10000000"), ContributionKind.CASH,
        name="Referred Member", referral_code=referral.referral_code, user_id=user_id,
    )
    await approve_contribution(db, event.id, user_id=user_id)
    print(f"Created referred member via {referral.referral_code}")


async def create_test_branch_and_staff(db: AsyncSession, user_id: int) -> None:
    """Open a branch, hire staff and score everyone's demo quarter."""
    try:
        await open_branch(db, "B-CENTRAL", "Central Branch", Decimal("300000000"), user_id=user_id)
        print("Opened branch B-CENTRAL")
    except InvalidTransition:
        print("Branch B-CENTRAL already exists")

    for staff in TEST_STAFF:
        try:
            await create_staff_member(db, staff["code"], staff["name"], staff["position"], "B-CENTRAL")
            print(f"Created staff member {staff['code']}")
        except InvalidTransition:
            print(f"Staff member {staff['code']} already exists")

        record = await calculate_kpi(
            db,
            HolderType.STAFF,
            staff["code"],
            DEMO_QUARTER,
            KpiMetrics(staff["card_sales"], staff["retention"], Decimal("90"), Decimal("100")),
            user_id=user_id,
        )
        print(f"  KPI {DEMO_QUARTER}: score {record.score}, {record.state.value}")

    record = await calculate_kpi(
        db,
        HolderType.BRANCH,
        "B-CENTRAL",
        DEMO_QUARTER,
        KpiMetrics(40, Decimal("75"), Decimal("1100000000"), Decimal("1000000000")),
        user_id=user_id,
    )
    print(f"Branch KPI {DEMO_QUARTER}: score {record.score}, {record.state.value}")


async def create_test_ledger(db: AsyncSession, user_id: int) -> None:
    """Book one quarter of income and expenses."""
    entries = [
        (LedgerEntryType.INCOME, Decimal("850000000"), "Card sales"),
        (LedgerEntryType.INCOME, Decimal("150000000"), "Service revenue"),
        (LedgerEntryType.EXPENSE, Decimal("420000000"), "Cost of goods"),
        (LedgerEntryType.EXPENSE, Decimal("180000000"), "Payroll and rent"),
    ]
    for entry_type, amount, description in entries:
        await record_ledger_entry(
            db, entry_type, amount, description,
            occurred_at=DEMO_DAY, branch_code="B-CENTRAL", user_id=user_id,
        )
    print(f"Booked {len(entries)} ledger entries for {DEMO_QUARTER}")


async def seed_all():
    print("\nConnecting to database...")

    async with get_db_context() as db:
        print("\n=== Creating test data ===\n")

        await seed_default_tiers(db)
        accountant = await create_test_accountant(db)
        await create_test_members(db, accountant.id)
        await create_test_branch_and_staff(db, accountant.id)
        await create_test_ledger(db, accountant.id)

    print("\n" + "=" * 50)
    print("TEST DATA CREATED SUCCESSFULLY!")
    print("=" * 50)
    print(f"""
Next steps:
1. Log in as test_accountant / test123
2. Preview the quarter: GET /api/distributions/preview/{DEMO_QUARTER}
3. Process it:         POST /api/distributions/process {{"period_value": "{DEMO_QUARTER}"}}
""")


if __name__ == "__main__":
    asyncio.run(seed_all())
