"""arbwatch push monitor — consumers of reconstructed push trees.

Modules
-------
feed
    ``PushFeed`` dispatches live feed messages and answers recent-push
    queries by reconstructing flat records into ``BuildPush`` trees.
renderer
    ``PushRenderer`` turns ``BuildPush`` trees into Rich renderables for
    terminal display.
"""
