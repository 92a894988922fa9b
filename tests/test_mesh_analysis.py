# =============================================================================
# tests/test_mesh_analysis.py - STL Analysis Tests
# =============================================================================
# Meshes are generated with trimesh primitives and exported to STL bytes,
# so the tests cover the same parsing path as real uploads.
# =============================================================================

import pytest
import trimesh

from lib.mesh_analysis import MeshAnalysisError, analyze_mesh, analyze_stl


def stl_bytes(mesh: trimesh.Trimesh) -> bytes:
    return mesh.export(file_type="stl")


@pytest.fixture
def box():
    return trimesh.creation.box(extents=(10, 20, 30))


class TestAnalyzeStl:
    """Tests for analyze_stl."""

    def test_clean_box(self, box):
        # Act
        analysis = analyze_stl(stl_bytes(box))

        # Assert: geometry
        assert analysis.triangles == 12
        assert analysis.dimensions == {"x": 10.0, "y": 20.0, "z": 30.0}
        assert analysis.volume == pytest.approx(6000.0)

        # Assert: no printability issues
        assert analysis.is_watertight is True
        assert analysis.body_count == 1
        assert analysis.issues == []

    def test_open_mesh_is_flagged(self, box):
        open_box = trimesh.Trimesh(vertices=box.vertices, faces=box.faces[:-2], process=False)

        analysis = analyze_stl(stl_bytes(open_box))

        assert analysis.is_watertight is False
        assert analysis.volume is None
        assert analysis.issues[0].title == "Mesh not watertight"
        assert analysis.issues[0].severity == 3

    def test_separate_bodies(self, box):
        second = box.copy()
        second.apply_translation([50, 0, 0])
        combined = trimesh.util.concatenate([box, second])

        analysis = analyze_stl(stl_bytes(combined))

        assert analysis.body_count == 2
        assert any(issue.title == "Disconnected parts" for issue in analysis.issues)

    def test_empty_file(self):
        with pytest.raises(MeshAnalysisError):
            analyze_stl(b"")

    def test_garbage_file(self):
        with pytest.raises(MeshAnalysisError):
            analyze_stl(b"garbage")


class TestAnalyzeMesh:
    """Tests on in-memory meshes, skipping STL parsing."""

    def test_duplicate_faces(self, box):
        doubled = trimesh.Trimesh(
            vertices=box.vertices,
            faces=list(box.faces) + [box.faces[0]],
            process=False,
        )

        analysis = analyze_mesh(doubled)

        assert analysis.duplicate_faces == 1

    def test_issues_sorted_by_severity(self, box):
        open_box = trimesh.Trimesh(vertices=box.vertices, faces=box.faces[:-2], process=False)
        second = open_box.copy()
        second.apply_translation([50, 0, 0])

        analysis = analyze_mesh(trimesh.util.concatenate([open_box, second]))

        severities = [issue.severity for issue in analysis.issues]
        assert severities == sorted(severities, reverse=True)
