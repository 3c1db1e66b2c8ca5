import sys

import moderngl
import pygame

from tearcloth.config import ClothConfig
from tearcloth.interaction import PointerState
from tearcloth.renderer import Renderer
from tearcloth.simulation import ClothSimulation

WINDOW_TITLE = "2D Cloth Simulator"
WINDOW_SIZE = (1200, 800)

# key: (config field, step)
PANEL_KEYS = {
    pygame.K_RIGHT: ("width", 1),
    pygame.K_LEFT: ("width", -1),
    pygame.K_DOWN: ("height", 1),
    pygame.K_UP: ("height", -1),
    pygame.K_q: ("stiffness", 0.01),
    pygame.K_a: ("stiffness", -0.01),
    pygame.K_e: ("tear_threshold", 0.1),
    pygame.K_d: ("tear_threshold", -0.1),
    pygame.K_g: ("gravity", 20.0),
    pygame.K_b: ("gravity", -20.0),
    pygame.K_i: ("iterations", 1),
    pygame.K_k: ("iterations", -1),
    pygame.K_c: ("cut_radius", 1.0),
    pygame.K_x: ("cut_radius", -1.0),
}


def hud_lines(sim: ClothSimulation, fps: float) -> list[str]:
    config = sim.config
    cloth = sim.cloth
    lines = [
        "Left Mouse: Drag and Tear | Right Mouse: Cut",
        f"FPS: {fps:.0f}",
        f"Width ({config.width})  [Left/Right]",
        f"Height ({config.height})  [Up/Down]",
        f"Cut radius: {config.cut_radius:.0f}  [C/X]",
        f"Gravity: {config.gravity[1]:.0f}  [G/B]",
        f"Stiffness: {config.stiffness:.2f}  [Q/A]",
        f"Tear threshold: {config.tear_threshold:.1f}  [E/D]",
        f"Iterations: {config.iterations}  [I/K]",
        f"Springs: {cloth.num_springs}  torn {cloth.torn_total}"
        f"  cut {cloth.cut_total}",
        "R: Reset Cloth  |  Shift: 10x step",
    ]
    if cloth.is_exploded:
        lines.append("UNSTABLE - press R")
    return lines


def main() -> None:
    # 1. Initialize Pygame with OpenGL
    width, height = WINDOW_SIZE
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_mode((width, height), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption(WINDOW_TITLE)
    ctx = moderngl.create_context()

    # 2. Simulation and renderer
    config = ClothConfig()
    sim = ClothSimulation(config)
    renderer = Renderer(ctx, width, height)

    print("\n" + "=" * 60)
    print("Mouse:")
    print("  Left Click+Drag - Drag (pull hard to tear)")
    print("  Right Click     - Cut springs under the cursor")
    print("\nPanel:")
    print("  Left/Right      - Cloth width")
    print("  Up/Down         - Cloth height")
    print("  Q / A           - Stiffness")
    print("  E / D           - Tear threshold")
    print("  G / B           - Gravity")
    print("  I / K           - Iterations")
    print("  C / X           - Cut radius")
    print("  Shift + key     - 10x faster adjustment")
    print("  R               - Reset cloth")
    print("=" * 60)

    running = True
    while running:
        dt = clock.tick(60) / 1000.0

        select_pressed = False
        select_released = False

        # Handle Events
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                shift_held = bool(event.mod & pygame.KMOD_SHIFT)

                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_r:
                    sim.reset()
                elif event.key in PANEL_KEYS:
                    name, step = PANEL_KEYS[event.key]
                    config = config.adjusted(name, step * (10 if shift_held else 1))

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                select_pressed = True

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                select_released = True

        # Continuous Input
        mouse_pos = pygame.mouse.get_pos()
        buttons = pygame.mouse.get_pressed()
        pointer = PointerState(
            position=(float(mouse_pos[0]), float(mouse_pos[1])),
            select_pressed=select_pressed,
            select_held=buttons[0],
            select_released=select_released,
            cut_held=buttons[2],
            over_ui=renderer.is_over_ui(mouse_pos),
        )

        sim.update(config, pointer, dt)
        renderer.draw(sim.render_snapshot(), hud_lines(sim, clock.get_fps()))

    # Cleanup
    print("\n[Main] Shutting down...")
    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
