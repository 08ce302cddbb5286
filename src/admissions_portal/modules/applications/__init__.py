"""
Applications Module

Student program applications and their review workflow:
1. Owners (agents, students) create applications in draft or submitted
2. Owners edit content while draft or incomplete, attach documents and submit
3. Staff move applications through review via the state machine
4. Every status change is appended to the history, audited and announced

Routers live in .router (owner endpoints) and .admin_router (staff endpoints).
"""
