"""FaceAuth Station package.

Feature modules (users, attendance, registration, verification, storage)
with a thin Flask controller layer over service, workflow and repository layers.
"""
