"""
Map page shell.

Responsibilities:
- Restore filter, selection and viewport state from the page URL.
- Fetch restaurants and apply the active filters.
- Keep the page URL in step with every edit.
"""
