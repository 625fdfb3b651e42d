"""Tests for materials and the wireframe policy"""

import pytest
import trimesh

from viewer.materials import Material, MaterialNormalizer, iter_materials
from viewer.scene import MeshNode, SceneObject


def make_object():
    mesh = trimesh.creation.box()
    nodes = [
        MeshNode("single", mesh, Material(color=0xFF0000, opacity=0.3, transparent=True)),
        MeshNode("multi", mesh.copy(), [Material(color=0x00FF00), Material(color=0x0000FF)]),
    ]
    return SceneObject(nodes, source_format="GLTF")


def wireframe_flags(scene_object):
    return [m.wireframe for node in scene_object.traverse() for m in iter_materials(node.material)]


@pytest.mark.unit
class TestMaterial:
    def test_phong_accent(self):
        material = Material.phong(0x667EEA, name="obj-default")

        assert material.kind == "phong"
        assert material.specular == 0x111111
        assert material.shininess == 200
        assert material.to_dict()["color"] == "#667eea"

    def test_iter_materials(self):
        assert list(iter_materials(None)) == []
        single = Material(color=1)
        assert list(iter_materials(single)) == [single]
        assert len(list(iter_materials([Material(color=1), Material(color=2)]))) == 2


@pytest.mark.viewer
class TestMaterialNormalizer:
    def test_apply_forces_opaque(self):
        scene_object = make_object()
        MaterialNormalizer().apply(scene_object)

        for node in scene_object.traverse():
            for material in iter_materials(node.material):
                assert material.opacity == 1.0
                assert not material.transparent

    def test_toggle_twice_restores_flags(self):
        scene_object = make_object()
        normalizer = MaterialNormalizer()
        normalizer.apply(scene_object)
        before = wireframe_flags(scene_object)

        assert normalizer.toggle_wireframe(scene_object) is True
        assert all(wireframe_flags(scene_object))
        assert normalizer.toggle_wireframe(scene_object) is False

        assert wireframe_flags(scene_object) == before

    def test_flag_is_sticky_across_objects(self):
        normalizer = MaterialNormalizer()
        normalizer.toggle_wireframe()

        scene_object = make_object()
        normalizer.apply(scene_object)

        assert all(wireframe_flags(scene_object))

    def test_toggle_leaves_opacity_alone(self):
        scene_object = make_object()
        normalizer = MaterialNormalizer()
        normalizer.toggle_wireframe(scene_object)

        assert scene_object.nodes[0].material.opacity == 0.3
