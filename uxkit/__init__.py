"""UX-Kit - template-driven UX research workflow package."""

# No imports at package level; import the modules directly where needed
