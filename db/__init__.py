"""
db/ - Database Layer
====================
Handles all PostgreSQL connections, schema initialization, and the
classification of constraint violations into forum errors.
This layer sits below the repositories; apart from config it only reads
the access-policy definitions when emitting row-level security DDL.
"""
