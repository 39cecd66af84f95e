"""Data Access Layer for users, expenses and card summaries.

Responsibilities
----------------
- Provide CRUD helpers returning plain dict rows.
- Enforce ownership references (an expense or card summary always points to
  an existing user) inside the same transaction as the write.
- Never expose deletion of expenses; card summaries may be deleted.

Authorization is not checked here; callers go through the access gate first.
"""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from expense_desk.core.errors import (
    CardSummaryNotFound,
    ExpenseNotFound,
    OwnerNotFound,
    RegistrationError,
)

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

EXPENSE_MUTABLE_COLUMNS: Tuple[str, ...] = (
    "expense_date",
    "reason",
    "detail",
    "amount",
    "currency",
    "exchange_rate",
    "amount_in_base_currency",
    "has_installments",
    "installment_count",
    "total_payable",
    "payment_channel",
    "payment_channel_detail",
    "document_url",
    "document_name",
    "document_type",
)

_OWNER_JOIN_SELECT = """
    SELECT e.*,
           u.email AS owner_email,
           u.display_name AS owner_display_name,
           u.sector AS owner_sector,
           u.card_last4 AS owner_card_last4
    FROM expenses e
    JOIN users u ON u.id = e.owner_user_id
"""


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @staticmethod
    def _user_exists(cur: sqlite3.Cursor, user_id: int) -> bool:
        cur.execute("SELECT 1 FROM users WHERE id = ?", (user_id,))
        return cur.fetchone() is not None

    # ------------------------------------------------------------------
    # Users
    def create_user(
        self,
        email: str,
        display_name: str,
        sector: str,
        card_last4: str,
        password_hash: Optional[str],
        is_admin: bool = False,
        is_code_verified: bool = False,
    ) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    f"""
                    INSERT INTO users (
                        email, display_name, sector, card_last4, password_hash,
                        is_admin, is_code_verified, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                    """,
                    (
                        email,
                        display_name,
                        sector,
                        card_last4,
                        password_hash,
                        int(is_admin),
                        int(is_code_verified),
                    ),
                )
            except sqlite3.IntegrityError:
                raise RegistrationError("this email is already registered") from None
            conn.commit()
            return int(cur.lastrowid)

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM users WHERE email = ?", (email,))
            row = cur.fetchone()
            return dict(row) if row else None

    def list_users(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM users ORDER BY display_name COLLATE NOCASE, id")
            return [dict(r) for r in cur.fetchall()]

    def admin_exists(self) -> bool:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT 1 FROM users WHERE is_admin = 1 LIMIT 1")
            return cur.fetchone() is not None

    def mark_code_verified(self, user_id: int) -> bool:
        """Flip the verification flag; return False when it was already set."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE users
                SET is_code_verified = 1, updated_at = ({UTC_NOW_SQL})
                WHERE id = ? AND is_code_verified = 0
                """,
                (user_id,),
            )
            conn.commit()
            return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Expenses
    def create_expense(self, owner_user_id: int, fields: Mapping[str, Any]) -> int:
        columns = ["owner_user_id", *EXPENSE_MUTABLE_COLUMNS]
        values = [owner_user_id, *(fields.get(c) for c in EXPENSE_MUTABLE_COLUMNS)]
        placeholders = ", ".join("?" for _ in columns)
        with self._connect() as conn:
            cur = conn.cursor()
            if not self._user_exists(cur, owner_user_id):
                raise OwnerNotFound()
            cur.execute(
                f"""
                INSERT INTO expenses ({', '.join(columns)}, loaded_at, updated_at)
                VALUES ({placeholders}, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                values,
            )
            conn.commit()
            return int(cur.lastrowid)

    def get_expense(self, expense_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM expenses WHERE id = ?", (expense_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def list_expenses_by_owner(self, user_id: int) -> List[Dict[str, Any]]:
        """Newest expense date first; ties by newest id."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT * FROM expenses
                WHERE owner_user_id = ?
                ORDER BY expense_date DESC, id DESC
                """,
                (user_id,),
            )
            return [dict(r) for r in cur.fetchall()]

    def list_all_expenses(self) -> List[Dict[str, Any]]:
        """Every expense joined with its owner's identity fields."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(_OWNER_JOIN_SELECT + " ORDER BY e.expense_date DESC, e.id DESC")
            return [dict(r) for r in cur.fetchall()]

    def update_expense(self, expense_id: int, fields: Mapping[str, Any]) -> None:
        assignments = ", ".join(f"{c} = ?" for c in EXPENSE_MUTABLE_COLUMNS)
        values = [fields.get(c) for c in EXPENSE_MUTABLE_COLUMNS]
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE expenses
                SET {assignments}, updated_at = ({UTC_NOW_SQL})
                WHERE id = ?
                """,
                (*values, expense_id),
            )
            if cur.rowcount == 0:
                raise ExpenseNotFound()
            conn.commit()

    def list_expenses_missing_base_amount(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT * FROM expenses
                WHERE amount_in_base_currency IS NULL OR amount_in_base_currency = 0
                ORDER BY id
                """
            )
            return [dict(r) for r in cur.fetchall()]

    def set_base_amounts(self, updates: Iterable[Tuple[int, float]]) -> int:
        """Write base-currency amounts in a single transaction; return rows touched."""
        touched = 0
        with self._connect() as conn:
            cur = conn.cursor()
            for expense_id, value in updates:
                cur.execute(
                    f"""
                    UPDATE expenses
                    SET amount_in_base_currency = ?, updated_at = ({UTC_NOW_SQL})
                    WHERE id = ?
                    """,
                    (value, expense_id),
                )
                touched += cur.rowcount
            conn.commit()
        return touched

    # ------------------------------------------------------------------
    # Card summaries
    def create_card_summary(
        self,
        owner_user_id: int,
        period: str,
        file_url: str,
        file_name: str,
        file_type: str,
        description: Optional[str] = None,
    ) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            if not self._user_exists(cur, owner_user_id):
                raise OwnerNotFound()
            cur.execute(
                f"""
                INSERT INTO card_summaries (
                    owner_user_id, period, file_url, file_name, file_type, description, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ({UTC_NOW_SQL}))
                """,
                (owner_user_id, period, file_url, file_name, file_type, description),
            )
            conn.commit()
            return int(cur.lastrowid)

    def get_card_summary(self, summary_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM card_summaries WHERE id = ?", (summary_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def list_card_summaries(self, owner_user_id: int) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT * FROM card_summaries
                WHERE owner_user_id = ?
                ORDER BY period DESC, id DESC
                """,
                (owner_user_id,),
            )
            return [dict(r) for r in cur.fetchall()]

    def delete_card_summary(self, summary_id: int) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM card_summaries WHERE id = ?", (summary_id,))
            if cur.rowcount == 0:
                raise CardSummaryNotFound()
            conn.commit()


__all__ = ["Database", "EXPENSE_MUTABLE_COLUMNS"]
