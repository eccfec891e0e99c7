from .decoder import Instruction, ParameterMode, OPCODES, decode_word, encode_word, disassemble

__all__ = ["Instruction", "ParameterMode", "OPCODES", "decode_word", "encode_word", "disassemble"]
