# Memory: 4K address space + built-in font
