"""Database queries for clients, body composition, nutrition and training logs."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Any, Optional

from prepcoach.tracking.models import (
    BodyCompositionEntry,
    ClientProfile,
    NutritionLogEntry,
    TrainingLogEntry,
)

# Suggestion field name -> clients column
TARGET_COLUMNS = {
    "calories": "calories_target",
    "protein": "protein_target",
    "carbs": "carbs_target",
    "fat": "fat_target",
    "carbs_training_day": "carbs_training_day",
    "carbs_rest_day": "carbs_rest_day",
}

_CLIENT_COLUMNS = """
    client_id, name, gender, goal_type, diet_start_date, target_weight,
    competition_date, calories_target, protein_target, carbs_target,
    fat_target, carbs_training_day, carbs_rest_day, created_at
"""


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _row_to_client(row: sqlite3.Row) -> ClientProfile:
    return ClientProfile(
        client_id=row[0],
        name=row[1],
        gender=row[2],
        goal_type=row[3],
        diet_start_date=_parse_date(row[4]),
        target_weight=row[5],
        competition_date=_parse_date(row[6]),
        calories_target=row[7],
        protein_target=row[8],
        carbs_target=row[9],
        fat_target=row[10],
        carbs_training_day=row[11],
        carbs_rest_day=row[12],
        created_at=datetime.fromisoformat(row[13]) if row[13] else None,
    )


class ClientQueries:
    """Database queries for client profiles."""

    @staticmethod
    def create_client(conn: sqlite3.Connection, client: ClientProfile) -> str:
        """Insert a new client and return its client_id."""
        conn.execute(
            """
            INSERT INTO clients (client_id, name, gender, goal_type, diet_start_date,
                                 target_weight, competition_date, calories_target,
                                 protein_target, carbs_target, fat_target,
                                 carbs_training_day, carbs_rest_day)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                client.client_id,
                client.name,
                client.gender,
                client.goal_type,
                _iso(client.diet_start_date),
                client.target_weight,
                _iso(client.competition_date),
                client.calories_target,
                client.protein_target,
                client.carbs_target,
                client.fat_target,
                client.carbs_training_day,
                client.carbs_rest_day,
            ),
        )
        conn.commit()
        return client.client_id

    @staticmethod
    def get_client(conn: sqlite3.Connection, client_id: str) -> Optional[ClientProfile]:
        """Get a client by ID."""
        row = conn.execute(
            f"SELECT {_CLIENT_COLUMNS} FROM clients WHERE client_id = ?",
            (client_id,),
        ).fetchone()
        return _row_to_client(row) if row else None

    @staticmethod
    def list_clients(conn: sqlite3.Connection) -> list[ClientProfile]:
        rows = conn.execute(f"SELECT {_CLIENT_COLUMNS} FROM clients ORDER BY name").fetchall()
        return [_row_to_client(row) for row in rows]

    @staticmethod
    def update_goal(
        conn: sqlite3.Connection,
        client_id: str,
        goal_type: str,
        diet_start_date: Optional[date],
        target_weight: Optional[float],
        competition_date: Optional[date],
    ) -> None:
        """Replace a client's goal, diet start and competition settings."""
        conn.execute(
            """
            UPDATE clients
            SET goal_type = ?, diet_start_date = ?, target_weight = ?, competition_date = ?
            WHERE client_id = ?
            """,
            (goal_type, _iso(diet_start_date), target_weight, _iso(competition_date), client_id),
        )
        conn.commit()

    @staticmethod
    def update_targets(
        conn: sqlite3.Connection, client_id: str, targets: dict[str, Any]
    ) -> list[str]:
        """
        Overwrite only the given nutrition targets in a single statement.

        Args:
            client_id: Client to update
            targets: Suggestion field name -> new value (e.g. {"calories": 2100})

        Returns:
            Names of the fields written
        """
        unknown = set(targets) - set(TARGET_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown target fields: {sorted(unknown)}")
        if not targets:
            return []

        names = [name for name in TARGET_COLUMNS if name in targets]
        assignments = ", ".join(f"{TARGET_COLUMNS[name]} = ?" for name in names)
        params = [targets[name] for name in names] + [client_id]
        conn.execute(f"UPDATE clients SET {assignments} WHERE client_id = ?", params)
        conn.commit()
        return names


class BodyCompositionQueries:
    """Database queries for body composition records."""

    @staticmethod
    def add_entry(conn: sqlite3.Connection, entry: BodyCompositionEntry) -> BodyCompositionEntry:
        """
        Save a measurement.

        If a record already exists for this client and date, it will be replaced.
        """
        conn.execute(
            """
            INSERT INTO body_composition (client_id, date, height, weight, body_fat,
                                          muscle_mass, visceral_fat, bmi)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(client_id, date) DO UPDATE SET
                height = excluded.height,
                weight = excluded.weight,
                body_fat = excluded.body_fat,
                muscle_mass = excluded.muscle_mass,
                visceral_fat = excluded.visceral_fat,
                bmi = excluded.bmi
            """,
            (
                entry.client_id,
                entry.date.isoformat(),
                entry.height,
                entry.weight,
                entry.body_fat,
                entry.muscle_mass,
                entry.visceral_fat,
                entry.bmi,
            ),
        )
        conn.commit()

        row = conn.execute(
            "SELECT record_id FROM body_composition WHERE client_id = ? AND date = ?",
            (entry.client_id, entry.date.isoformat()),
        ).fetchone()
        entry.record_id = row[0]
        return entry

    @staticmethod
    def get_history(
        conn: sqlite3.Connection,
        client_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BodyCompositionEntry]:
        """
        Get body composition records in chronological order.

        Args:
            client_id: Client ID
            start_date: If set, return records on or after this date
            end_date: If set, return records on or before this date
        """
        query = """
            SELECT record_id, client_id, date, height, weight, body_fat,
                   muscle_mass, visceral_fat, bmi
            FROM body_composition
            WHERE client_id = ?
        """
        params: list = [client_id]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY date"

        rows = conn.execute(query, params).fetchall()
        return [
            BodyCompositionEntry(
                record_id=row[0],
                client_id=row[1],
                date=date.fromisoformat(row[2]),
                height=row[3],
                weight=row[4],
                body_fat=row[5],
                muscle_mass=row[6],
                visceral_fat=row[7],
                bmi=row[8],
            )
            for row in rows
        ]

    @staticmethod
    def get_latest_weight(
        conn: sqlite3.Connection, client_id: str, on_or_before: Optional[date] = None
    ) -> Optional[float]:
        """Most recent recorded weight, optionally as of a date."""
        query = "SELECT weight FROM body_composition WHERE client_id = ? AND weight IS NOT NULL"
        params: list = [client_id]
        if on_or_before:
            query += " AND date <= ?"
            params.append(on_or_before.isoformat())
        query += " ORDER BY date DESC LIMIT 1"
        row = conn.execute(query, params).fetchone()
        return row[0] if row else None


class NutritionLogQueries:
    """Database queries for daily nutrition logs."""

    @staticmethod
    def log_day(conn: sqlite3.Connection, entry: NutritionLogEntry) -> NutritionLogEntry:
        """Log a day of nutrition (insert or replace)."""
        cursor = conn.execute(
            """
            INSERT OR REPLACE INTO nutrition_logs (client_id, date, compliant, calories,
                                                   protein_grams, carbs_grams, fat_grams)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.client_id,
                entry.date.isoformat(),
                entry.compliant,
                entry.calories,
                entry.protein_grams,
                entry.carbs_grams,
                entry.fat_grams,
            ),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_history(
        conn: sqlite3.Connection,
        client_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[NutritionLogEntry]:
        query = """
            SELECT log_id, client_id, date, compliant, calories,
                   protein_grams, carbs_grams, fat_grams
            FROM nutrition_logs
            WHERE client_id = ?
        """
        params: list = [client_id]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY date"

        rows = conn.execute(query, params).fetchall()
        return [
            NutritionLogEntry(
                log_id=row[0],
                client_id=row[1],
                date=date.fromisoformat(row[2]),
                compliant=None if row[3] is None else bool(row[3]),
                calories=row[4],
                protein_grams=row[5],
                carbs_grams=row[6],
                fat_grams=row[7],
            )
            for row in rows
        ]


class TrainingLogQueries:
    """Database queries for training logs."""

    @staticmethod
    def log_session(conn: sqlite3.Connection, entry: TrainingLogEntry) -> TrainingLogEntry:
        """Log a training session or rest day (insert or replace)."""
        cursor = conn.execute(
            """
            INSERT OR REPLACE INTO training_logs (client_id, date, training_type)
            VALUES (?, ?, ?)
            """,
            (entry.client_id, entry.date.isoformat(), entry.training_type),
        )
        conn.commit()
        entry.log_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_history(
        conn: sqlite3.Connection,
        client_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TrainingLogEntry]:
        query = """
            SELECT log_id, client_id, date, training_type
            FROM training_logs
            WHERE client_id = ?
        """
        params: list = [client_id]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY date"

        rows = conn.execute(query, params).fetchall()
        return [
            TrainingLogEntry(
                log_id=row[0],
                client_id=row[1],
                date=date.fromisoformat(row[2]),
                training_type=row[3],
            )
            for row in rows
        ]
