"""Payment core services.

Import concrete services from their modules; this package does not
re-export them so that configuration can depend on ssm_service without
pulling in the rest of the core.
"""
