"""
Root pytest configuration.

Sets the environment before any application module is imported:
in-memory database, no provider key, no background refresh.
"""

import os

os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["NEWS_API_KEY"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
