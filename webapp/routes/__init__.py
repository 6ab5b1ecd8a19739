"""
Route blueprints for the Answer Paper Grader API.
"""
