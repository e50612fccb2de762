#!/usr/bin/env python3
"""
Generate API keys for staff accounts.
Prints the SQL that creates the portal_users table and one INSERT per role.
"""

import secrets
import string

ROLES = {
    "Admin": "System Admin",
    "LabTechnician": "Lab Technician",
    "Receptionist": "Front Desk",
}


def generate_api_key(prefix="staff", length=32):
    """Generate a secure random API key."""
    chars = string.ascii_letters + string.digits
    random_part = ''.join(secrets.choice(chars) for _ in range(length))
    return f"{prefix}_{random_part}"


if __name__ == "__main__":
    print("=" * 70)
    print("Staff API Key Generator")
    print("=" * 70)
    print()
    print("""CREATE TABLE portal_users (
    id INTEGER PRIMARY KEY,
    display_name VARCHAR(120) NOT NULL,
    role VARCHAR(32) NOT NULL,
    api_key VARCHAR(64) NOT NULL UNIQUE,
    is_active INTEGER NOT NULL DEFAULT 1
);
""")

    for role, display_name in ROLES.items():
        print(f"-- For a {display_name} ({role}):")
        print(f"""INSERT INTO portal_users (display_name, role, api_key, is_active)
VALUES ('{display_name}', '{role}', '{generate_api_key()}', 1);
""")

    print("=" * 70)
    print("Role values are case-sensitive and must match the role cookie.")
    print("=" * 70)
