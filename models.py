from sqlalchemy import Column, Integer, Numeric, CheckConstraint
from database import Base

class CashCard(Base):
    __tablename__ = "cash_cards"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_cash_cards_amount_non_negative"),)

    id     = Column(Integer, primary_key=True, autoincrement=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CashCard {self.id} – {self.amount}>"
