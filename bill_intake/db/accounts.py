"""DB operations for `users` profiles."""

from __future__ import annotations

from psycopg2.extras import RealDictCursor

_PROFILE_FIELDS = ("name", "email", "address", "postcode")


def get_user_profile(pool, user_id):
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT id, name, email, address, postcode FROM users WHERE id = %s",
                (user_id,),
            )
            row = cur.fetchone()
            return dict(row) if row else None


def update_user_profile(pool, user_id, profile):
    """
    Write name/email/address/postcode for a user. Returns the stored profile.

    Credentials live with the identity provider, so the first update creates
    the profile row.
    """
    values = [profile.get(f) for f in _PROFILE_FIELDS]
    with pool.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                """
                INSERT INTO users (id, name, email, address, postcode)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    name = EXCLUDED.name,
                    email = EXCLUDED.email,
                    address = EXCLUDED.address,
                    postcode = EXCLUDED.postcode,
                    updated_at = CURRENT_TIMESTAMP
                RETURNING id, name, email, address, postcode
                """,
                (user_id, *values),
            )
            return dict(cur.fetchone())
