"""
BOMA Email Package.

Modules:
- core: Base send_email function (SMTP)
- store: Order confirmation and shipping notification templates
"""
