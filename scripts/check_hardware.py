import sys
import logging
# Add project root to path
sys.path.append(".")

from trafficlights import colors, config, utils
from trafficlights.errors import TrafficLightsError
from trafficlights.session import switch_to_color

def main():
    logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
    print("=== Traffic Lights Hardware Check ===")
    ports = utils.list_port_names()
    if not ports:
        print("No serial ports found. Exiting.")
        return
    for num, name in enumerate(ports):
        print(f"  #{num}: {name}")

    port = input("Enter COM port (e.g. COM3): ").strip()
    if port not in ports:
        print(f"Unknown port '{port}'. Exiting.")
        return

    options = colors.list_colors()
    while True:
        print("\n--- MENU ---")
        for num, color in enumerate(options, start=1):
            print(f"[{num}] {color.name} ({color.wire_code})")
        print("[a] Cycle through all colors")
        print("[q] Quit")

        choice = input("Select: ").strip().lower()

        if choice == 'q':
            break

        if choice == 'a':
            selected = [c for c in options if c is not colors.TEST]
        elif choice.isdigit() and 1 <= int(choice) <= len(options):
            selected = [options[int(choice) - 1]]
        else:
            print("Unknown command")
            continue

        for color in selected:
            print(f"Switching to {color.name}...")
            try:
                switch_to_color(port, color)
                print(">> OK")
            except TrafficLightsError as e:
                print(f">> FAILED: {e}")
                break

if __name__ == "__main__":
    main()
