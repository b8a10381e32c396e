# CPU: register file, ALU helpers, opcode decoder
