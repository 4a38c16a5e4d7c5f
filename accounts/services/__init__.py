"""Domain services: sessions, account lifecycle, admin, mail."""
