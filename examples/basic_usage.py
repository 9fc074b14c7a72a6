"""Basic usage example for sw-mc.

Builds a small microcontroller, saves it next to this script, then reads
every microcontroller saved by the game and reports broken wires.
"""

from pathlib import Path

from sw_mc import Endpoint, Microcontroller, NodeMode, SignalType
from sw_mc.config import SwMcConfig
from sw_mc.logging_config import setup_logging_from_config
from sw_mc.models.errors import MicrocontrollerFolderNotFoundError
from sw_mc.utils.paths import load_microcontrollers


def build_adder() -> Microcontroller:
    mc = Microcontroller.new(name="Adder", description="Adds two numbers.")
    a = mc.add_io(SignalType.NUMBER, NodeMode.INPUT, label="A")
    b = mc.add_io(SignalType.NUMBER, NodeMode.INPUT, label="B")
    out = mc.add_io(SignalType.NUMBER, NodeMode.OUTPUT, label="Sum", description="A + B")
    add = mc.add_component("add")

    mc.connect(Endpoint(component_id=a.component_id), Endpoint(component_id=add.id, port=0))
    mc.connect(Endpoint(component_id=b.component_id), Endpoint(component_id=add.id, port=1))
    mc.connect(Endpoint(component_id=add.id), Endpoint(component_id=out.component_id))
    return mc


def main():
    # Settings can also come from SW_MC_* environment variables
    config = SwMcConfig(log_level="INFO")
    setup_logging_from_config(config)

    adder = build_adder()
    adder.to_file(Path(__file__).with_name("adder.xml"))

    try:
        for path, mc in load_microcontrollers(config=config):
            for problem in mc.check_connections():
                print(f"{path.name}: {problem}")
    except MicrocontrollerFolderNotFoundError as e:
        print(e)


if __name__ == "__main__":
    main()
