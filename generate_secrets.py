#!/usr/bin/env python3
"""
Generate secrets for STREAKr
Prints a SECRET_KEY (signs bearer tokens) and an ADMIN_TOKEN (admin endpoints)
"""

import secrets


def generate_secrets():
    print("🔐 Generating secrets for STREAKr...")
    print("=" * 50)

    print(f"SECRET_KEY={secrets.token_urlsafe(32)}")
    print(f"ADMIN_TOKEN={secrets.token_urlsafe(24)}")

    print("=" * 50)
    print("📝 Copy these values to your .env file")
    print("⚠️  Rotating SECRET_KEY signs every player out")


if __name__ == "__main__":
    generate_secrets()
