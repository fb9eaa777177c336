# QCBridge - GUI Main Window
# Copyright (C) 2025 maigre - Hemisphere Project
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import threading

import dearpygui.dearpygui as dpg

from qcbridge.logging_setup import MAX_LOG_LINES
from qcbridge.mapping.loader import format_table


class MainWindow:
    def __init__(self, bridge, log_handler, window_title="QCBridge - OSC to MIDI Bridge"):
        self.bridge = bridge
        self.log_handler = log_handler
        self.window_title = window_title
        self.log_lines = []
        self.setlist = bridge.session.setlist
        self.table = bridge.session.table
        self.state_dirty = True

        bridge.dispatcher.listeners.append(self.on_bridge_event)

        dpg.create_context()
        dpg.configure_app(init_file="")
        self.setup_gui()

    def setup_gui(self):
        """Setup the DearPyGUI interface"""
        config = self.bridge.config
        with dpg.window(label=self.window_title, tag="primary_window",
                        width=900, height=700, no_close=True):

            dpg.add_text("Network", color=(150, 200, 255))
            dpg.add_text(f"OSC listening on {config['osc']['listen_address']}:{config['osc']['listen_port']}")
            dpg.add_text(f"OSC sending to {config['osc']['send_host']}:{config['osc']['send_port']}")
            dpg.add_text("", tag="midi_device_text")

            dpg.add_separator()

            dpg.add_text("Session", color=(150, 200, 255))
            with dpg.group(horizontal=True):
                dpg.add_text("Current Setlist:")
                dpg.add_text("0", tag="setlist_text", color=(0, 255, 0))

            dpg.add_separator()

            dpg.add_text("Mappings", color=(150, 200, 255))
            with dpg.group(horizontal=True):
                dpg.add_button(label="Reload Mappings", callback=self.on_reload_mappings, width=150)
                dpg.add_text("", tag="mappings_status_text", color=(150, 150, 150))
            with dpg.child_window(tag="mappings_window", width=-1, height=180, border=True,
                                  horizontal_scrollbar=True):
                dpg.add_text("", tag="mappings_text")

            dpg.add_separator()

            dpg.add_text("Logs", color=(150, 200, 255))
            with dpg.child_window(tag="log_window", width=-1, height=220, border=True):
                dpg.add_text("Waiting for OSC messages...", tag="log_text", wrap=850)

            dpg.add_separator()

            dpg.add_button(label="Quit", callback=self.on_quit, width=150)

    def on_bridge_event(self, event, data):
        """Dispatcher listener; runs on the OSC or reload thread"""
        if event == "setlist":
            self.setlist = data
        elif event == "mappings":
            self.table = data
        self.state_dirty = True

    def on_reload_mappings(self, sender=None, app_data=None):
        # Reload off the render thread so a slow disk never freezes the UI
        threading.Thread(target=self.bridge.dispatcher.refresh_mapping_table, daemon=True).start()

    def on_quit(self, sender=None, app_data=None):
        dpg.stop_dearpygui()

    def update_state(self):
        if not self.state_dirty:
            return
        self.state_dirty = False

        midi_port = self.bridge.midi_port_name
        dpg.set_value("midi_device_text",
                      f"MIDI device: {midi_port}" if midi_port else "MIDI device: none (MIDI output disabled)")
        dpg.set_value("setlist_text", str(self.setlist))
        dpg.set_value("mappings_status_text", f"{len(self.table)} mapping(s) from {self.table.source}")
        dpg.set_value("mappings_text", "\n".join(format_table(self.table)))

    def update_log(self):
        """Append buffered log lines to the panel with auto-scroll"""
        lines = self.log_handler.drain()
        if not lines:
            return
        self.log_lines.extend(lines)
        if len(self.log_lines) > MAX_LOG_LINES:
            self.log_lines = self.log_lines[-MAX_LOG_LINES:]
        dpg.set_value("log_text", "\n".join(self.log_lines))
        dpg.set_y_scroll("log_window", dpg.get_y_scroll_max("log_window"))

    def run(self):
        """Run the DearPyGUI application until the window is closed"""
        dpg.create_viewport(title=self.window_title, width=920, height=750)
        dpg.setup_dearpygui()
        dpg.set_primary_window("primary_window", True)
        dpg.show_viewport()

        try:
            while dpg.is_dearpygui_running():
                self.update_state()
                self.update_log()
                dpg.render_dearpygui_frame()
        finally:
            self.bridge.dispatcher.listeners.remove(self.on_bridge_event)
            dpg.destroy_context()

    def stop(self):
        dpg.stop_dearpygui()
