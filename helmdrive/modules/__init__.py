"""
Helmdrive Modules

Dependency direction (left may import right, never the reverse):

    release_set -> reconcile, credentials, executor, workspace
    executor    -> environment
    every module -> api

api holds the models, host protocols and errors every other module shares.
"""
