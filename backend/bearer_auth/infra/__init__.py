"""Infrastructure adapters (SQL, Redis, JWT) implementing service ports."""
