"""
PawMatch matching algorithms
============================

Pure functions over immutable snapshots: the candidate filter pipeline and
the availability calendar. Nothing in here touches the database.
"""
