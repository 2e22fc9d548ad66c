"""
Courtside - Volleyball Tournament Management Service

Responsibilities:
- Team, tournament and game records (CRUD)
- Game scheduling and referee assignment
- Score submission and referee verification
- Winner derivation for verified games
- Token-based access control (admin, referee, user)
"""
