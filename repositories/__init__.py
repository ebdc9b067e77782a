"""
repositories/ - Data Access Layer
==================================
One repository per forum table (questions, answers, votes).
Each encapsulates the parameterized SQL for its table, turns constraint
violations into forum errors, and returns domain model objects.
"""
