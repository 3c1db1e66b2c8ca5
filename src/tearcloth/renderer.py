# renderer.py
from pathlib import Path

import moderngl
import numpy as np
import pygame

from tearcloth.simulation import RenderSnapshot
from tearcloth.types import PROJ

BACKGROUND = (0.0, 0.0, 0.0, 1.0)
SPRING_COLOR = (1.0, 1.0, 1.0)
PINNED_COLOR = (0.9, 0.16, 0.22)
PARTICLE_COLOR = (0.0, 0.47, 0.95)

# Point sprite diameters in pixels
PINNED_SIZE = 6.0
PARTICLE_SIZE = 4.0

# x, y, r, g, b, size
VERTEX_FLOATS = 6

# ------------------------
# Matrix helpers
# ------------------------


def orthographic(width: float, height: float) -> PROJ:
    """Map window pixels (origin top-left, y down) to clip space."""
    return np.array(
        [
            [2.0 / width, 0.0, 0.0, -1.0],
            [0.0, -2.0 / height, 0.0, 1.0],
            [0.0, 0.0, -1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    ).T


def line_vertices(segments: np.ndarray) -> np.ndarray:
    verts = np.empty((len(segments) * 2, VERTEX_FLOATS), dtype="f4")
    verts[:, 0:2] = segments.reshape(-1, 2)
    verts[:, 2:5] = SPRING_COLOR
    verts[:, 5] = 1.0
    return verts


def point_vertices(positions: np.ndarray, pinned: np.ndarray) -> np.ndarray:
    verts = np.empty((len(positions), VERTEX_FLOATS), dtype="f4")
    verts[:, 0:2] = positions
    verts[:, 2:5] = np.where(pinned[:, None], PINNED_COLOR, PARTICLE_COLOR)
    verts[:, 5] = np.where(pinned, PINNED_SIZE, PARTICLE_SIZE)
    return verts


# ------------------------
# Renderer
# ------------------------


class Renderer:
    def __init__(
        self,
        ctx: moderngl.Context,
        width: int = 1200,
        height: int = 800,
    ):
        self.ctx = ctx
        self.ctx.enable(moderngl.PROGRAM_POINT_SIZE)

        self.width = width
        self.height = height

        pygame.font.init()
        self.font = pygame.font.SysFont("monospace", 16)

        base = Path(__file__).parent / "shaders"

        # Cloth program (lines and points)
        self.prog = self.ctx.program(
            vertex_shader=(base / "cloth.vert").read_text(),
            fragment_shader=(base / "cloth.frag").read_text(),
        )
        self.prog["u_proj"].write(orthographic(width, height).tobytes())  # type: ignore

        # UI program
        self.ui_prog = self.ctx.program(
            vertex_shader=(base / "ui.vert").read_text(),
            fragment_shader=(base / "ui.frag").read_text(),
        )

        # UI quad (updated every frame)
        self.ui_vbo = self.ctx.buffer(reserve=4 * 4 * 4)
        self.ui_vao = self.ctx.vertex_array(
            self.ui_prog,
            [(self.ui_vbo, "2f 2f", "in_pos", "in_uv")],
        )
        self.ui_texture: moderngl.Texture | None = None
        self.ui_rect = pygame.Rect(0, 0, 0, 0)

        # Cloth buffers, grown on demand
        layout = "2f 3f 1f"
        attrs = ("in_position", "in_color", "in_size")
        self.line_vbo = self.ctx.buffer(reserve=VERTEX_FLOATS * 4, dynamic=True)
        self.line_vao = self.ctx.vertex_array(self.prog, [(self.line_vbo, layout, *attrs)])
        self.point_vbo = self.ctx.buffer(reserve=VERTEX_FLOATS * 4, dynamic=True)
        self.point_vao = self.ctx.vertex_array(self.prog, [(self.point_vbo, layout, *attrs)])

        print(f"[Renderer] Initialized {width}x{height}")

    # ------------------------
    # Draw
    # ------------------------

    def draw(self, snapshot: RenderSnapshot, hud_lines: list[str]) -> None:
        self.ctx.clear(*BACKGROUND)

        self.prog["u_round"].value = False  # type: ignore
        n_lines = self._upload(self.line_vbo, line_vertices(snapshot.segments))
        if n_lines:
            self.line_vao.render(mode=moderngl.LINES, vertices=n_lines)

        self.prog["u_round"].value = True  # type: ignore
        n_points = self._upload(
            self.point_vbo, point_vertices(snapshot.positions, snapshot.pinned)
        )
        if n_points:
            self.point_vao.render(mode=moderngl.POINTS, vertices=n_points)

        self._draw_ui_overlay(hud_lines)
        pygame.display.flip()

    def is_over_ui(self, pos: tuple[int, int]) -> bool:
        return bool(self.ui_rect.collidepoint(pos))

    def _upload(self, vbo: moderngl.Buffer, verts: np.ndarray) -> int:
        if len(verts) == 0:
            return 0
        if verts.nbytes > vbo.size:
            vbo.orphan(verts.nbytes)
        vbo.write(verts.tobytes())
        return len(verts)

    # ------------------------
    # UI Overlay
    # ------------------------

    def _surface_to_texture(self, surface: pygame.Surface) -> moderngl.Texture:
        surface = pygame.transform.flip(surface, False, True)
        data = pygame.image.tobytes(surface, "RGBA", False)

        tex = self.ctx.texture(surface.get_size(), 4, data)
        tex.filter = (moderngl.NEAREST, moderngl.NEAREST)
        tex.swizzle = "RGBA"
        return tex

    def _draw_ui_overlay(self, lines: list[str]) -> None:
        self.ctx.enable(moderngl.BLEND)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA

        pad = 6
        line_h = self.font.get_height()
        w = max(self.font.size(line)[0] for line in lines) + 2 * pad
        h = line_h * len(lines) + 2 * pad

        surface = pygame.Surface((w, h), pygame.SRCALPHA)
        surface.fill((30, 30, 40, 200))

        y = pad
        for line in lines:
            surface.blit(self.font.render(line, True, (220, 220, 220)), (pad, y))
            y += line_h

        if self.ui_texture:
            self.ui_texture.release()
        self.ui_texture = self._surface_to_texture(surface)
        self.ui_texture.use(0)

        # --- Compute top-left quad ---
        margin = 10
        self.ui_rect = pygame.Rect(margin, margin, w, h)

        ndc_w = 2.0 * w / self.width
        ndc_h = 2.0 * h / self.height
        mx = 2.0 * margin / self.width
        my = 2.0 * margin / self.height

        x0 = -1.0 + mx
        y0 = 1.0 - my
        x1 = x0 + ndc_w
        y1 = y0 - ndc_h

        quad = np.array(
            [
                x0, y0, 0.0, 1.0,
                x0, y1, 0.0, 0.0,
                x1, y0, 1.0, 1.0,
                x1, y1, 1.0, 0.0,
            ],
            dtype="f4",
        )

        self.ui_vbo.write(quad.tobytes())
        self.ui_prog["u_texture"] = 0
        self.ui_vao.render(mode=moderngl.TRIANGLE_STRIP)
        self.ctx.disable(moderngl.BLEND)
