"""Tests for splats.columns: column-store assembly and scene framing."""

import numpy as np
import pytest


def _collection(splats):
    from splats.model import SplatCollection
    return SplatCollection(splats=tuple(splats), format="binary_little_endian", vertex_count=len(splats))


def _splat(position=(0.0, 0.0, 0.0), dc=(0.0, 0.0, 0.0), rest=None):
    from splats.model import SH_REST_COUNT, Splat
    return Splat(
        position=position,
        scale=(0.1, 0.2, 0.3),
        rotation=(0.0, 0.0, 0.0, 1.0),
        opacity=0.5,
        color_dc=dc,
        color_rest=rest if rest is not None else (0.0,) * SH_REST_COUNT,
    )


class TestAssembleColumns:
    def test_shapes_and_dtype(self):
        from splats.columns import assemble_columns

        columns = assemble_columns(_collection([_splat(), _splat()]))
        assert len(columns) == 2
        assert columns.position.shape == (2, 3)
        assert columns.rotation.shape == (2, 4)
        assert columns.opacity.shape == (2,)
        assert columns.sh_rest.shape == (2, 9, 3)
        for arr in (columns.position, columns.scale, columns.rotation, columns.opacity,
                    columns.sh_dc, columns.sh_rest, columns.color):
            assert arr.dtype == np.float32

    def test_rest_grouped_into_triples(self):
        from splats.columns import SH_REST_GROUP_NAMES, assemble_columns

        rest = tuple(float(i) for i in range(45))
        columns = assemble_columns(_collection([_splat(rest=rest)]))
        assert columns.sh_rest[0, 0].tolist() == [0.0, 1.0, 2.0]
        assert columns.sh_rest[0, 8].tolist() == [24.0, 25.0, 26.0]

        attrs = columns.attributes()
        assert SH_REST_GROUP_NAMES[0] == "sh_rest_0_2"
        assert SH_REST_GROUP_NAMES[-1] == "sh_rest_24_26"
        assert attrs["sh_rest_3_5"].tolist() == [[3.0, 4.0, 5.0]]
        assert attrs["sh_rest_3_5"].flags["C_CONTIGUOUS"]
        assert set(attrs) >= {"position", "scale", "rotation", "opacity", "sh_dc", "color"}

    def test_display_color_unclamped(self):
        from splats.columns import assemble_columns
        from splats.shading import SH_C0

        columns = assemble_columns(_collection([_splat(dc=(10.0, 0.0, -10.0))]))
        np.testing.assert_allclose(columns.color[0], [0.5 + 10 * SH_C0, 0.5, 0.5 - 10 * SH_C0], rtol=1e-6)

    def test_outputs_are_fresh(self):
        from splats.columns import assemble_columns

        collection = _collection([_splat()])
        first = assemble_columns(collection)
        first.position[:] = 99.0
        assert assemble_columns(collection).position.tolist() == [[0.0, 0.0, 0.0]]

    def test_empty(self):
        from splats.columns import assemble_columns

        columns = assemble_columns(_collection([]))
        assert len(columns) == 0
        assert columns.sh_rest.shape == (0, 9, 3)


class TestFraming:
    def test_frame_scene(self):
        from splats.columns import assemble_columns

        columns = assemble_columns(_collection([_splat((0.0, 0.0, 0.0)), _splat((2.0, 4.0, 0.0))]))
        lo, hi = columns.bounds()
        assert lo.tolist() == [0.0, 0.0, 0.0]
        assert hi.tolist() == [2.0, 4.0, 0.0]
        center, distance = columns.frame_scene()
        assert center.tolist() == [1.0, 2.0, 0.0]
        assert distance == pytest.approx(8.0)
