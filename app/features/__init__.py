"""
Features - self-contained units of the ReMember Me service.

- database: Supabase repositories
- contacts: duplicate detection, display helpers, vCard import
- health: relationship decay, drifters, dashboard and tree statistics
- garden: garden layout
- calendar: OAuth, token encryption, Google Calendar sync and matching
- rescue: weekly rescue batch
- practice: gamification (levels, event prep, game contacts)
- security: rate limiting
"""
