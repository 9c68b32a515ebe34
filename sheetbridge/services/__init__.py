"""Pipeline services: classification, locating, publishing, coordination, scheduling."""
