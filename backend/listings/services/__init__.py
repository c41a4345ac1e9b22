# Services package init
"""
Listings Backend — Services Layer
===================================

Service Inventory:
    - ImageService: content hashing, image directory writes and lookups
    - ItemStore (abstract): SqlItemStore and JsonItemStore persistence
    - ItemService: orchestrates hash → store image → insert, and the reads
"""
