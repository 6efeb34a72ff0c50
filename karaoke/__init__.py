"""
KaraokeVerse — VR karaoke client.

The headset page renders the scene and streams input over the browser
bridge; everything that decides what happens next runs here.

Modules:
  config          — Constants and environment overrides
  models          — Vectors, poses, panels, buttons, profiles, songs
  geometry        — Ray / rectangle math and placement in front of the head
  panels          — Panel registry: visibility, hit-testing, press/release
  ui              — Concrete panels (profile, rooms, songs, keyboard, overlays)
  input_router    — XR controller + desktop mouse → one pointer contract
  profile_service — Profile CRUD client + cached profile id
  song_catalog    — Song list / search client
  scene           — Room anchors, camera rig, microphone grab
  video           — Video player port and event translation
  flow            — Application flow state machine
  bridge          — WebSocket bridge to the rendering page
  app             — Application context and frame loop
  main            — Command line entry point
"""
