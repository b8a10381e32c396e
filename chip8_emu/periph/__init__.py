# Peripherals: timers, display buffer, keypad
