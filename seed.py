from ledgerbook.core.database import Base, SessionLocal, engine
from ledgerbook.models import EntryDirection, EntrySource, LedgerType
from ledgerbook.services.institute_service import create_institute
from ledgerbook.services.ledger_service import create_category, create_ledger
from ledgerbook.services.petty_cash_service import PettyCashManager
from ledgerbook.services.posting_service import post_ledger_entry
from ledgerbook.services.transaction_service import record_entry

from faker import Faker
import random
from datetime import date, timedelta

fake = Faker()
TENANT_ID = "demo-tenant"

Base.metadata.create_all(bind=engine)
db = SessionLocal()

try:
    print("🔄 Creating institutes...")
    institutes = [create_institute(db, TENANT_ID, f"{fake.city()} {kind}") for kind in ("Mahallu", "Madrasa")]
    print(f"✅ Seeded {len(institutes)} institutes")

    start = date.today() - timedelta(days=90)

    for institute in institutes:
        print(f"🔄 Seeding ledgers for {institute.name}...")
        bank = create_ledger(db, TENANT_ID, "Bank Account", LedgerType.BANK, institute_id=institute.id)
        donations = create_ledger(db, TENANT_ID, "Donations", LedgerType.INCOME, institute_id=institute.id)
        maintenance = create_ledger(db, TENANT_ID, "Maintenance", LedgerType.EXPENSE, institute_id=institute.id)
        friday = create_category(db, TENANT_ID, donations.id, "Friday Collection")
        repairs = create_category(db, TENANT_ID, maintenance.id, "Repairs")

        record_entry(db, TENANT_ID, bank.id, start, "Opening bank balance", 50000, EntryDirection.CREDIT)

        for _ in range(random.randint(15, 25)):
            on_date = start + timedelta(days=random.randint(0, 89))
            amount = random.randint(5, 200) * 50
            if random.random() < 0.6:
                record_entry(
                    db, TENANT_ID, donations.id, on_date, f"Donation from {fake.name()}",
                    amount, EntryDirection.CREDIT, source=EntrySource.COLLECTION,
                    category_id=friday.id, payment_method=random.choice(["cash", "bank", "upi"]),
                )
            else:
                record_entry(
                    db, TENANT_ID, maintenance.id, on_date, fake.sentence(nb_words=4),
                    amount, EntryDirection.DEBIT, category_id=repairs.id,
                    payment_method="cash", reference_no=fake.bothify("INV-####"),
                )

        for month in range(3):
            post_ledger_entry(
                db, TENANT_ID, "Staff Salary", LedgerType.EXPENSE, 15000,
                f"Salary - {fake.name()}", start + timedelta(days=30 * month + 28),
                EntrySource.SALARY, reference_id=fake.bothify("SAL-####"), institute_id=institute.id,
            )

        print(f"🔄 Seeding petty cash for {institute.name}...")
        manager = PettyCashManager(db, TENANT_ID)
        fund = manager.create_fund(institute.id, fake.name(), 5000, fund_date=start)
        for _ in range(random.randint(3, 6)):
            manager.record_expense(fund.id, random.randint(2, 10) * 50, fake.sentence(nb_words=3),
                                   receipt_no=fake.bothify("R-###"))
        manager.replenish(fund.id)

    print("🎉 Seeding completed!")
except Exception as e:
    db.rollback()
    print(f"❌ Error while seeding: {e}")
    raise
finally:
    db.close()
