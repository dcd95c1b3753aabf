"""
Unit tests for ChunkAssembler
"""
import numpy as np

from core.slicing.chunk_assembler import Chunk, ChunkAssembler
from core.test_utils import make_row_gradient
from core.utils.image_ops import stack_vertically


class TestChunkAssembler:

    def test_copies_rows_exactly(self):
        image = make_row_gradient(600)
        chunks = ChunkAssembler(min_chunk_height=100).assemble(image, [0, 250, 600])

        assert [(c.top, c.bottom) for c in chunks] == [(0, 250), (250, 600)]
        assert np.array_equal(chunks[0].image.pixels, image.pixels[0:250])
        assert np.array_equal(chunks[1].image.pixels, image.pixels[250:600])

    def test_chunks_own_their_buffers(self):
        image = make_row_gradient(300)
        chunks = ChunkAssembler(min_chunk_height=10).assemble(image, [0, 150, 300])
        for chunk in chunks:
            assert not np.shares_memory(chunk.image.pixels, image.pixels)

    def test_thin_slices_skipped_but_index_kept(self):
        image = make_row_gradient(400)
        chunks = ChunkAssembler(min_chunk_height=100).assemble(image, [0, 100, 150, 400])

        assert [c.index for c in chunks] == [1, 3]
        assert [c.height for c in chunks] == [100, 250]

    def test_cuts_clamped_to_image(self):
        image = make_row_gradient(300)
        chunks = ChunkAssembler(min_chunk_height=1).assemble(image, [0, 200, 500])
        assert chunks[-1].bottom == 300

    def test_round_trip(self):
        image = make_row_gradient(1000)
        chunks = ChunkAssembler(min_chunk_height=100).assemble(image, [0, 333, 700, 1000])
        assert stack_vertically([c.image for c in chunks]).same_pixels(image)

    def test_chunk_naming(self):
        chunk = Chunk(index=3, top=0, bottom=10, image=make_row_gradient(10))
        assert chunk.name_for("page_01.png") == "page_01_part_3.png"
        assert chunk.name_for("dir/cap.7.webp") == "cap.7_part_3.webp"
