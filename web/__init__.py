"""
Web layer - Flask blueprints.
"""
