# Services package init
"""
PlaceShare Backend — Services Layer
=====================================

Service Inventory:
    - PlaceService: get/list/create/update/delete places; keeps
      Place.creator and User.places consistent
    - authorization: owner-only mutation guard
    - ImageLifecycleManager: attaches image paths, removes files after delete
    - FileService: upload validation and storage
"""
