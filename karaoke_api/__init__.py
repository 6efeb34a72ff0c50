"""
KaraokeVerse API — profiles and the song catalog over REST.

Modules:
  config     — Database URL, port, CORS origins
  db         — Engine / session helpers and table creation
  tables     — SQLAlchemy tables (players, songs)
  schemas    — Request / response models
  repository — Queries used by the routes
  seed       — Seed song catalog
  api        — FastAPI application
"""
