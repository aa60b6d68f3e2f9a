# Services package init
"""
Storybook Backend - Services Layer
====================================

Service Inventory:
    - StoryService:   story CRUD, listings, ownership checks, like toggle
    - CommentService: comment creation and per-story listing
    - UserService:    provisioning of gateway identities into `users`

Services take the request's AsyncSession and an explicit CurrentUser, and
raise application exceptions; they know nothing about HTTP or templates.
"""
