# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the VoxelHub API:
# - test_models.py: Pydantic model validation
# - test_lifecycle.py: Project and bid state rules
# - test_*_service.py: Services against the in-memory database (conftest.py)
# - test_notifications.py / test_websocket.py: Real-time events
# - test_mesh_analysis.py / test_tasks.py: STL analysis and the worker task
# - test_auth.py: Access token verification
# - test_api.py: HTTP endpoints through TestClient
#
# Run tests with: pytest
# =============================================================================
