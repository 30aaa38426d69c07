# Routes package init
"""
TextCollector — API Routes Package
===================================

Route Inventory:
    - snippets.py:   /api/snippets...                 list, detail, add, edit, tag, delete
    - tags.py:       /api/tags, /api/tags/orphans     tag listing and pruning
    - data.py:       /api/stats, /api/export, /api/import, /api/data
    - shortcuts.py:  /api/shortcuts/add-snippet       automation entry point
    - health.py:     /health

Routes stay thin: read the request, call a service, shape the response.
"""
